class FormBotError(Exception):
    """Base error for the webhook."""


class SheetError(FormBotError):
    """Spreadsheet could not be reached, authorized or read.

    An empty table is not an error; the resolver reports it as an outcome.
    """


class LineApiError(FormBotError):
    def __init__(self, message, status=None, body=""):
        super().__init__(message)
        self.status = status
        self.body = body
