from ffi_gen import ir, Reason

from fakes import DOUBLE, INT, LONG_DOUBLE, OBJC_ID, VOID, objc_interface, objc_method, objc_pointer


class TestObjC:

    def test_interface_with_methods(self, parse):
        view = objc_interface(
            'NSView', None,
            objc_method('initWithFrame:', OBJC_ID, [('frame', DOUBLE)]),
            objc_method('setNeedsDisplay:', VOID, [('flag', INT)]),
            objc_method('new', OBJC_ID, class_method=True),
        )
        result = parse(view)

        cls = result.find('NSView')
        assert isinstance(cls, ir.ObjCInterface)
        assert not cls.is_incomplete
        names = [(m.name, m.original_name, m.is_class_method) for m in cls.methods]
        assert names == [
            ('initWithFrame', 'initWithFrame:', False),
            ('setNeedsDisplay', 'setNeedsDisplay:', False),
            ('new', 'new', True),
        ]
        assert cls.methods[0].return_type is ir.OBJC_ID

    def test_multi_part_selector(self, parse):
        cls = objc_interface('NSDict', None,
                             objc_method('setObject:forKey:', VOID, [('obj', OBJC_ID), ('key', OBJC_ID)]))
        method = parse(cls).find('NSDict').methods[0]
        assert method.name == 'setObject_forKey'
        assert [p.name for p in method.parameters] == ['obj', 'key']

    def test_superclass_is_shared(self, parse):
        base = objc_interface('NSObject')
        view = objc_interface('NSView', base)
        window = objc_interface('NSWindow', base)
        result = parse(view, window, base)

        assert len(result.of_type(ir.ObjCInterface)) == 3
        assert result.find('NSView').superclass is result.find('NSObject')
        assert result.find('NSWindow').superclass is result.find('NSObject')

    def test_method_mentioning_own_class(self, parse):
        view = objc_interface('NSView')
        view.children.append(objc_method('superview', objc_pointer(view)))
        result = parse(view)

        cls = result.find('NSView')
        assert cls.methods[0].return_type.child.decl is cls

    def test_unsupported_method_dropped(self, parse):
        cls = objc_interface('NSNumber', None,
                             objc_method('longDoubleValue', LONG_DOUBLE),
                             objc_method('intValue', INT))
        result = parse(cls)
        assert [m.name for m in result.find('NSNumber').methods] == ['intValue']
        diags = list(result.diagnostics)
        assert [(d.name, d.reason) for d in diags] == [('NSNumber.longDoubleValue', Reason.UNIMPLEMENTED_TYPE)]
