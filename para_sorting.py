import re
from datetime import date
from functools import cmp_to_key

NAME_PLACEHOLDER = "{{name}}"

# Longest token first so "YYYY" is never read as two "YY".
_DATE_TOKENS = {
    "YYYY": (r"(?P<year>\d{4})", "%Y"),
    "YY": (r"(?P<short_year>\d{2})", "%y"),
    "MM": (r"(?P<month>\d{2})", "%m"),
    "DD": (r"(?P<day>\d{2})", "%d"),
}
_TOKEN_RE = re.compile("|".join(_DATE_TOKENS))


def extract_date_format(name_format):
    """Returns the part of `name_format` before the first {{name}} placeholder."""
    index = name_format.find(NAME_PLACEHOLDER)
    if index == -1:
        return name_format
    return name_format[:index]


def format_date_tokens(text, on_date):
    return _TOKEN_RE.sub(lambda m: on_date.strftime(_DATE_TOKENS[m.group(0)][1]), text)


def format_item_name(name_format, name, on_date):
    """Builds an item name such as "2024-03-15 Launch" from "YYYY-MM-DD {{name}}"."""
    if NAME_PLACEHOLDER not in name_format:
        return f"{format_date_tokens(name_format, on_date)}{name}"
    # Date tokens are only substituted outside the placeholder, never inside the user's name.
    return name.join(format_date_tokens(part, on_date) for part in name_format.split(NAME_PLACEHOLDER))


def parse_name_date(item_name, date_format):
    """Parses the date a name-prefix format put in front of `item_name`; None when absent."""
    if not date_format or not _TOKEN_RE.search(date_format):
        return None
    pattern, last = [], 0
    for match in _TOKEN_RE.finditer(date_format):
        pattern.append(re.escape(date_format[last:match.start()]))
        pattern.append(_DATE_TOKENS[match.group(0)][0])
        last = match.end()
    pattern.append(re.escape(date_format[last:]))
    try:
        match = re.match("".join(pattern), item_name)
    except re.error: # the same token used twice produces a duplicate group name
        return None
    if not match:
        return None
    parts = match.groupdict()
    if parts.get("year"):
        year = int(parts["year"])
    elif parts.get("short_year"):
        year = 2000 + int(parts["short_year"])
    else:
        return None
    try:
        return date(year, int(parts.get("month") or 1), int(parts.get("day") or 1))
    except ValueError:
        return None


# --- ORDERING ---

def compare_by_last_modified(a, b):
    """Newest first: negative when `a` was modified more recently than `b`."""
    if a["mtime"] > b["mtime"]: return -1
    if a["mtime"] < b["mtime"]: return 1
    return 0


def sort_items(entries, sort_order="last_modified", name_format="{{name}}"):
    """Orders top-level item entries for display according to `sort_order`."""
    if sort_order == "name":
        return sorted(entries, key=lambda e: e["name"].lower())
    if sort_order == "name_date":
        date_format = extract_date_format(name_format)
        dated, undated = [], []
        for entry in entries:
            parsed = parse_name_date(entry["name"], date_format)
            (dated if parsed else undated).append((parsed, entry))
        dated.sort(key=lambda pair: (-pair[0].toordinal(), pair[1]["name"].lower()))
        undated.sort(key=lambda pair: pair[1]["name"].lower())
        return [entry for _, entry in dated + undated]
    return sorted(entries, key=cmp_to_key(compare_by_last_modified))
