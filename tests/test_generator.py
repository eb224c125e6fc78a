"""
Tests for the Generator driver and the gen_ffi.py command line.
"""

import pytest

import gen_ffi
from ffi_gen import Config, Generator, HeaderParser

from fakes import INT, LONG_DOUBLE, FakeFrontend, func, struct, field


def _cursors():
    return [
        struct('Point', field('x', INT)),
        func('add', INT, [('a', INT), ('b', INT)]),
        func('precise', LONG_DOUBLE),
    ]


class TestGenerator:

    def test_writes_module_and_annotations(self, tmp_path, capsys):
        config = Config(module='mylib', output=str(tmp_path / 'out'))
        config.headers.entry_points = ['mylib.h']
        result = Generator(config, FakeFrontend(_cursors())).generate()

        lua = (tmp_path / 'out' / 'mylib.lua').read_text()
        types = (tmp_path / 'out' / 'mylib.d.lua').read_text()
        assert 'M.add = C.add' in lua
        assert '---@class mylib.Point: ffi.cdata*' in types
        assert [b.name for b in result.bindings] == ['Point', 'add']

        out = capsys.readouterr().out
        assert '=== Generating FFI bindings:' in out
        assert '  mylib.h => mylib' in out
        assert '  2 declarations (1 Func, 1 Struct)' in out
        assert '  >> warning: 1 diagnostics (1 unimplemented-type)' in out

    def test_paths(self, tmp_path):
        config = Config(module='gfx', output=str(tmp_path))
        gen = Generator(config, FakeFrontend([]))
        assert gen.lua_path == str(tmp_path / 'gfx.lua')
        assert gen.types_path == str(tmp_path / 'gfx.d.lua')

    def test_parse_only(self):
        result = Generator(Config(), FakeFrontend(_cursors())).parse()
        assert result.find('add') is not None
        assert len(result.diagnostics) == 1


class TestCommandLine:

    def test_parse_args(self):
        args = gen_ffi.parse_args(['a.h', 'b.h', '--module', 'm', '-I', 'inc', '-D', 'X=1', '--strict'])
        assert args.headers == ['a.h', 'b.h']
        assert args.module == 'm'
        assert args.include_dirs == ['inc']
        assert args.defines == ['X=1']
        assert args.strict

    def test_load_config_overrides(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text('{"module": "fromfile", "compiler-opts": ["-DA"]}')
        args = gen_ffi.parse_args(['x.h', '--config', str(path), '--output', 'out', '-I', 'inc'])
        config = gen_ffi.load_config(args)
        assert config.module == 'fromfile'
        assert config.output == 'out'
        assert config.headers.entry_points == ['x.h']
        assert config.compiler_opts == ['-DA', '-Iinc']

    def test_load_config_preset(self):
        config = gen_ffi.load_config(gen_ffi.parse_args(['--preset', 'libc']))
        assert config.module == 'libc'
        assert config.functions.should_include_name('printf')
        assert not config.functions.should_include_name('fopen')
        assert [e.postfix for e in config.var_arg_functions['printf']] == ['_s', '_i', '_d']
        assert config.headers.include_directives

    def test_missing_config_fails(self, tmp_path, capsys):
        assert gen_ffi.main(['--config', str(tmp_path / 'missing.json')]) == 1
        assert 'error:' in capsys.readouterr().err

    @pytest.fixture
    def stub_generator(self, monkeypatch):
        class StubGenerator:
            def __init__(self, config):
                self.config = config

            def generate(self):
                return HeaderParser(self.config).parse(_cursors())

        monkeypatch.setattr(gen_ffi, 'Generator', StubGenerator)

    def test_diagnostics_do_not_fail_by_default(self, stub_generator):
        assert gen_ffi.main(['x.h']) == 0

    def test_strict_fails_on_diagnostics(self, stub_generator, capsys):
        assert gen_ffi.main(['x.h', '--strict']) == 1
        assert 'strict mode' in capsys.readouterr().err


class TestPresets:

    def test_sokol_gfx(self):
        from bindings import sokol
        config = Config()
        sokol.configure(config)
        assert config.module == 'gfx'

        result = HeaderParser(config).parse([
            func('sg_setup', INT),
            func('_sg_internal', INT),
            func('sg_install_trace_hooks', INT),
            struct('sg_desc', field('x', INT)),
        ])
        assert [b.name for b in result.bindings] == ['setup', 'desc']

    def test_sokol_debugtext_printf(self):
        from bindings import sokol
        config = Config()
        sokol.configure(config, prefix='sdtx_')
        assert config.module == 'debugtext'
        assert [e.postfix for e in config.var_arg_functions['sdtx_printf']] == ['_s', '_i', '_f']
        assert not config.functions.should_include_name('sdtx_vprintf')

    def test_explicit_module_kept(self):
        from bindings import libc
        config = Config(module='c')
        libc.configure(config)
        assert config.module == 'c'
