"""
Sokol binding configuration

Configures the binding generator with Sokol-specific customizations:
- module prefix stripped from every name (sg_make_buffer -> make_buffer)
- internal declarations (leading underscore) excluded
- sdtx_printf bound with fixed call signatures
- trace hooks skipped
"""

from ffi_gen import Config, DeclarationFilter

# Module names for each prefix
MODULE_NAMES = {
    'slog_': 'log',
    'sg_': 'gfx',
    'sapp_': 'app',
    'stm_': 'time',
    'saudio_': 'audio',
    'sgl_': 'gl',
    'sdtx_': 'debugtext',
    'sshape_': 'shape',
    'sglue_': 'glue',
}


def _prefix_filter(prefix: str, **kwargs) -> DeclarationFilter:
    """Include `<prefix>*`, strip the prefix from generated names"""
    return DeclarationFilter(
        include=[f'{prefix}.*', f'_?{prefix.upper()}.*'],
        rename={f'_?(?:{prefix}|{prefix.upper()})(.*)': r'\1'},
        **kwargs,
    )


def configure(config: Config, prefix: str = 'sg_'):
    """Configure for a single sokol header, identified by its prefix"""
    if config.module == 'bindings':
        config.module = MODULE_NAMES.get(prefix, prefix.rstrip('_'))

    config.functions = _prefix_filter(prefix, exclude=[
        '_.*',
        'sg_install_trace_hooks',
        'sdtx_vprintf',
    ])
    config.structs = _prefix_filter(prefix, exclude=['_.*', 'sg_trace_hooks'])
    config.unions = _prefix_filter(prefix)
    config.enums = _prefix_filter(prefix, exclude=['_.*'])
    config.typedefs = _prefix_filter(prefix, exclude=['sg_trace_hooks'])
    config.unnamed_enums = _prefix_filter(prefix)
    config.macros = DeclarationFilter(include=[f'{prefix.upper()}.*'], exclude=['.*_INCLUDED', '.*_API_DECL'])
    config.globals = DeclarationFilter(include=[])

    if prefix == 'sdtx_':
        config.add_var_args(
            'sdtx_printf',
            ('_s', ['const char *']),
            ('_i', ['int']),
            ('_f', ['double']),
        )
