"""
C standard library binding configuration

Binds a small, commonly wanted slice of libc:
- stdio printf family with fixed call signatures
- string.h / stdlib.h helpers
- errno-free math from math.h
"""

from ffi_gen import Config, DeclarationFilter


def configure(config: Config):
    """Configure for <stdio.h>, <stdlib.h>, <string.h> and <math.h>"""
    if config.module == 'bindings':
        config.module = 'libc'
    # The entry point is any header including these; bind only what they declare
    if not config.headers.include_directives:
        config.headers.include_directives = ['*/stdio.h', '*/stdlib.h', '*/string.h', '*/math.h']

    config.functions = DeclarationFilter(
        include=[
            'printf', 'snprintf', 'puts', 'putchar',
            'malloc', 'calloc', 'realloc', 'free', 'abs', 'atoi', 'strtol', 'strtod',
            'strlen', 'strcmp', 'strncmp', 'strchr', 'strstr', 'memcpy', 'memmove', 'memset', 'memcmp',
            'sqrt', 'pow', 'sin', 'cos', 'tan', 'atan2', 'floor', 'ceil', 'fabs',
        ],
        member_rename={'.*': {'__(.*)': r'\1'}},
    )
    config.structs = DeclarationFilter(include=[])
    config.unions = DeclarationFilter(include=[])
    config.enums = DeclarationFilter(include=[])
    config.unnamed_enums = DeclarationFilter(include=[])
    config.globals = DeclarationFilter(include=[])
    config.typedefs = DeclarationFilter(include=[])
    config.macros = DeclarationFilter(include=['EOF', 'RAND_MAX', 'EXIT_SUCCESS', 'EXIT_FAILURE', 'M_PI'])
    config.leaf_functions = DeclarationFilter(include=['strlen', 'abs', 'sqrt', 'fabs'])

    config.add_var_args(
        'printf',
        ('_s', ['const char *']),
        ('_i', ['int']),
        ('_d', ['double']),
    )
    config.add_var_args(
        'snprintf',
        ('_s', ['const char *']),
        ('_i', ['int']),
        ('_d', ['double']),
    )
