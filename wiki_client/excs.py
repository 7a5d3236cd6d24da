"""
wiki_client.excs - Exceptions and exception handling for API
requests.

To catch a permission error:

..code-block:: python

    try:
        page.edit(contents, 'summary')
    except wc.WikiError.protectedpage as exc:
        print('Page is protected:', exc)

Some codes are grouped under a broader category, so that a single
``except`` clause covers all of them:

..code-block:: python

    try:
        page.edit(contents, 'summary')
    except wc.UnauthorizedOperation:
        print('Not allowed to do that.')

To catch an edit conflict, use the following:

..code-block:: python

    try:
        contents = page.read()
        page.edit(contents + 'hi', summary)
    except wc.EditConflict:
        # handling the edit conflict
        # is left as an exercise for the reader

Note that ``EditConflict`` and ``OperationCanceled`` do NOT inherit
from WikiClientError.
"""

__all__ = [
    'WikiClientError',
    'WikiError',
    'UnauthorizedOperation',
    'BadTokenError',
    'InvalidActionError',
    'AccountAssertionFailure',
    'OperationConflict',
    'UnexpectedDataError',
    'TokenFetchTimeout',
    'WikiaApiError',
    'NotFoundApiError',
    'EditConflict',
    'OperationCanceled',
    'WikiWarning',
    'error_for_code',
]

class _MetaGetattr(type):
    """Metaclass to provide __getattr__ on a class."""
    def __getattr__(cls, name):
        if name.startswith('__'):
            raise AttributeError(name)
        if cls is WikiError:
            return error_for_code(name)
        setattr(cls, name, type(name, (cls,), {}))
        return getattr(cls, name)

class WikiClientError(Exception):
    """Base class for errors raised by this library."""
    pass

#pylint: disable=too-few-public-methods
class WikiError(WikiClientError, metaclass=_MetaGetattr):
    """An error returned by the wiki's API. Raised by WikiSite.request.

    Any attribute of this class is a subclass for that error code,
    so ``WikiError.badtoken`` catches only bad token errors.
    """
    def __init__(self, code=None, info=None):
        """Initialize the error with its API code and message."""
        self._code = code
        self.info = info
        if code is None:
            super().__init__(info)
        else:
            super().__init__('{}: {}'.format(code, info))

    @property
    def code(self):
        """Return the exception code."""
        if self._code is not None:
            return self._code
        return type(self).__name__

class UnauthorizedOperation(WikiError):
    """The user does not have permission to do that."""
    pass

class BadTokenError(WikiError):
    """The token sent with the request was invalid or stale."""
    pass

class InvalidActionError(WikiError):
    """The API does not know the requested action."""
    pass

class AccountAssertionFailure(WikiError):
    """An ``assert=user`` or ``assert=bot`` check failed."""
    pass

class OperationConflict(WikiError):
    """The operation conflicted with another change on the wiki."""
    pass

_CATEGORIES = {
    'permissiondenied': UnauthorizedOperation,
    'readapidenied': UnauthorizedOperation,
    'mustbeloggedin': UnauthorizedOperation,
    'permissions': UnauthorizedOperation,
    'badtoken': BadTokenError,
    'unknown_action': InvalidActionError,
    'assertuserfailed': AccountAssertionFailure,
    'assertbotfailed': AccountAssertionFailure,
    'prev_revision': OperationConflict,
}

for _code, _base in _CATEGORIES.items():
    setattr(WikiError, _code, type(_code, (_base,), {}))
del _code, _base

def error_for_code(code):
    """Return the exception class for an API error code.

    Codes ending in ``conflict`` are grouped under OperationConflict.
    ``WikiError.<code>`` returns the same class.
    """
    cls = WikiError.__dict__.get(code)
    if isinstance(cls, type) and issubclass(cls, WikiError):
        return cls
    base = OperationConflict if code.endswith('conflict') else WikiError
    cls = type(code, (base,), {})
    if code not in dir(WikiError):
        # codes like "code" would shadow real attributes
        setattr(WikiError, code, cls)
    return cls

class UnexpectedDataError(WikiClientError):
    """The API returned something this library did not expect."""
    pass

class TokenFetchTimeout(WikiClientError):
    """Fetching a token took longer than allowed."""
    pass

class WikiaApiError(WikiClientError):
    """An error returned by one of Wikia's own APIs."""
    def __init__(self, error_type=None, error_message=None, code=None,
                 details=None, trace_id=None):
        """Initialize the error with the fields of the exception node."""
        self.error_type = error_type
        self.error_message = error_message
        self.code = code
        self.details = details
        self.trace_id = trace_id
        message = '{}: {}'.format(error_type, error_message)
        if details:
            message += ' {}'.format(details)
        super().__init__(message)

class NotFoundApiError(WikiaApiError):
    """Wikia's API could not find the requested object."""
    pass

class EditConflict(Exception):
    """The last content fetch was before the most recent revision.

    Note: this exception does NOT inherit from WikiError! You must
    use it explicitly:
        try:
            page.edit(contents, summary)
        except (WikiError, EditConflict):
            print('API error or edit conflict')
    """
    pass

class OperationCanceled(Exception):
    """The operation was canceled through its CancellationToken.

    This does NOT inherit from WikiClientError, since a canceled
    operation has not failed.
    """
    pass

class WikiWarning(UserWarning, metaclass=_MetaGetattr):
    """The API sent a warning in the response."""
    pass
