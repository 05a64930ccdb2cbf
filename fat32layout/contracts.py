"""
fat32layout/contracts.py

Pre/postcondition checks for the public codec operations.

Every public operation is wrapped with `contract`, which states what the
caller must provide, what the operation guarantees on success and the closed
set of codec errors it may raise. Checks run only under ``__debug__`` and
while ``config.contracts`` is enabled; with ``python -O`` the decorator
returns the function unchanged.
"""
import functools

from fat32layout import logger
from fat32layout.config import config
from fat32layout.errors import Fat32Error


class ContractViolation(AssertionError):
    """Raised when a caller or an operation breaks a stated contract."""

    def __init__(self, function:str, kind:str, detail:str = ''):
        self.function = function
        self.kind = kind
        self.detail = detail
        msg = '%s: %s violated' % (function, kind)
        if detail:
            msg += ' (%s)' % detail
        super().__init__(msg)


def contract(requires = None, ensures = None, raises = ()):
    """Attach a contract to a function.

    :param requires: callable taking the call arguments, returns `True` when
                     the precondition holds
    :param ensures: callable taking the result followed by the call
                    arguments, returns `True` when the postcondition holds
    :param raises: tuple of `Fat32Error` subclasses the function may raise
    """
    raises = tuple(raises)

    def decorator(func):
        if not __debug__:
            return func

        name = func.__qualname__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not config.contracts:
                return func(*args, **kwargs)

            if requires is not None and not requires(*args, **kwargs):
                logger.debug('[CONTRACT] %s precondition failed' % name)
                raise ContractViolation(name, 'precondition')

            try:
                result = func(*args, **kwargs)
            except Fat32Error as e:
                if not isinstance(e, raises):
                    logger.debug('[CONTRACT] %s raised undeclared %s' % (name, type(e).__name__))
                    raise ContractViolation(name, 'error set', type(e).__name__) from e
                raise

            if ensures is not None and not ensures(result, *args, **kwargs):
                logger.debug('[CONTRACT] %s postcondition failed' % name)
                raise ContractViolation(name, 'postcondition')
            return result

        wrapper.requires = requires
        wrapper.ensures = ensures
        wrapper.raises = raises
        return wrapper
    return decorator
