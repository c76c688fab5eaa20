class ParaError(Exception):
    """Base class for every error raised by the PARA core."""


class TooManyCollisionsError(ParaError):
    pass


class NotInParaFolderError(ParaError):
    """The item is not a top-level child of any source folder."""


class StorageError(ParaError):
    pass


class InvalidItemNameError(ParaError):
    pass


class ItemExistsError(ParaError):
    pass
