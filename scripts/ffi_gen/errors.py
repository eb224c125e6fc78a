"""
Exception types

Only configuration, front-end and structural failures raise. Unsupported
declarations are reported as diagnostics instead (see diagnostics.py).
"""


class BindgenError(Exception):
    pass


class ConfigError(BindgenError):
    """Malformed or inconsistent configuration"""
    pass


class FrontendError(BindgenError):
    """libclang could not be loaded or a translation unit failed to parse"""
    pass


class IndexIntegrityError(BindgenError):
    """A USR was inserted into the declaration index twice"""

    def __init__(self, usr: str):
        super().__init__(f'declaration already published under USR {usr!r}')
        self.usr = usr


class ContextStackError(BindgenError):
    """Parse contexts were pushed and popped out of order"""
    pass
