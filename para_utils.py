import os
import sys
import traceback
from datetime import datetime

APP_NAME = "ParaArchiver"

# --- UTILITY FUNCTIONS ---

def get_user_data_path(filename):
    """Returns a persistent path in the user's app data directory."""
    if sys.platform == "win32":
        # C:\Users\<user>\AppData\Roaming\ParaArchiver
        data_dir = os.path.join(os.getenv('APPDATA') or os.path.expanduser('~'), APP_NAME)
    else: # macOS and Linux
        data_dir = os.path.join(os.path.expanduser('~'), '.config', APP_NAME)
    os.makedirs(data_dir, exist_ok=True)
    return os.path.join(data_dir, filename)


# --- LOGGING ---

LOG_LINE_FORMAT = "{timestamp} [{level:<8}] {message}"


class Logger:
    """Appends one line per event to a plain-text log; the log viewer reads it back by day."""

    def __init__(self, filename="para_archiver.log"):
        self.log_file = filename # Expect a full path
        self.info("Logger initialized.")

    def _write(self, level, message):
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        try:
            with open(self.log_file, 'a', encoding='utf-8') as f:
                f.write(LOG_LINE_FORMAT.format(timestamp=timestamp, level=level, message=message) + "\n")
        except OSError as e:
            print(f"FATAL: Could not write to log file {self.log_file}: {e}")

    def info(self, message): self._write("INFO", message)
    def warn(self, message): self._write("WARNING", message)
    def error(self, message, exc_info=False):
        if exc_info: message += f"\n{traceback.format_exc()}"
        self._write("ERROR", message)

    def _read_lines(self):
        try:
            with open(self.log_file, 'r', encoding='utf-8') as f:
                return f.read().splitlines()
        except FileNotFoundError:
            return []

    def get_log_dates(self):
        """Dates with at least one entry, newest first. Traceback lines carry no date and are skipped."""
        dates = set()
        for line in self._read_lines():
            try:
                datetime.strptime(line[:10], '%Y-%m-%d')
            except ValueError:
                continue
            dates.add(line[:10])
        return sorted(dates, reverse=True)

    def get_logs_for_date(self, date_str):
        return "\n".join(line.strip() for line in self._read_lines() if line.startswith(date_str))
