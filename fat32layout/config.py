import os
from contextlib import contextmanager

FALSE_VALUES = ('0', 'false', 'no', 'off')

ENV_CONTRACTS = 'FAT32LAYOUT_CONTRACTS'
ENV_STRICT_READ = 'FAT32LAYOUT_STRICT_READ'


def _env_flag(environ, name, default):
    value = environ.get(name)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() not in FALSE_VALUES


class Config:
    def __init__(self, contracts:bool = True, strict_read:bool = True):
        #: check pre/postconditions around every public operation
        self.contracts = contracts
        #: GPT readers enforce the full validity predicates by default
        self.strict_read = strict_read

    @contextmanager
    def override(self, **kwargs):
        """Temporarily change configuration values.

        Unknown names raise `AttributeError` so a typo never silently
        leaves the real setting in place.
        """
        saved = {}
        for name, value in kwargs.items():
            if not hasattr(self, name):
                raise AttributeError('Unknown config option %s' % name)
            saved[name] = getattr(self, name)
            setattr(self, name, value)
        try:
            yield self
        finally:
            for name, value in saved.items():
                setattr(self, name, value)

    def __str__(self):
        res = []
        res.append('Config')
        res.append('contracts: {}'.format(self.contracts))
        res.append('strict_read: {}'.format(self.strict_read))
        return '\n'.join(res)


def load_config(environ = None) -> Config:
    if environ is None:
        environ = os.environ
    return Config(
        contracts = _env_flag(environ, ENV_CONTRACTS, True),
        strict_read = _env_flag(environ, ENV_STRICT_READ, True),
    )


config = load_config()
