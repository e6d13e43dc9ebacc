"""End-to-end tests for building C# bindings."""

from textwrap import dedent

import pytest

from csharp_bindgen import (
    CharWidth, Configuration, CSharpBuilder, NameConflict, ParseFailure,
    UnknownRoot, UnresolvedType, build_all,
)

PREAMBLE = (
    '// <auto-generated>\n'
    '// This code was generated by csharp_bindgen. Do not edit it by hand.\n'
    '// </auto-generated>\n'
    'using System;\n'
    'using System.Runtime.InteropServices;\n'
    '\n'
)


# ---------------------------------------------------------------------------
# Full output
# ---------------------------------------------------------------------------

class TestFullOutput:
    """Exact output for small inputs."""

    def test_void_function(self, build):
        script = build('pub extern "C" fn foo(){}', 'foo', namespace='foo', type_name='bar')
        assert script == PREAMBLE + dedent('''\
            namespace foo
            {
                internal static class bar
                {
                    /// <returns>void</returns>
                    [DllImport("foo", CallingConvention = CallingConvention.Cdecl, EntryPoint = "foo")]
                    internal static extern void Foo();
                }
            }
            ''')

    def test_function_with_parameters_and_docs(self, build, config):
        config.dll_name = 'foo'
        script = build('''
            /// test documentation
            pub extern "C" fn foo_bar_zet(foo_bar: u8, b: *const u8) -> *const u8 { b }
        ''', 'foo_bar_zet', namespace='foo', type_name='bar')
        assert script == PREAMBLE + dedent('''\
            namespace foo
            {
                internal static class bar
                {
                    /// <summary>
                    /// test documentation
                    /// </summary>
                    /// <param name="fooBar">u8</param>
                    /// <param name="b">u8*</param>
                    /// <returns>u8*</returns>
                    [DllImport("foo", CallingConvention = CallingConvention.Cdecl, EntryPoint = "foo_bar_zet")]
                    internal static extern IntPtr FooBarZet(byte fooBar, IntPtr b);
                }
            }
            ''')

    def test_struct(self, build, config):
        config.dll_name = 'foo'
        script = build('''
            #[repr(C)]
            /// test documentation struct
            pub struct Foo {
                /// a field. Very important!
                field_a: u8,
                /// b field. reserved or something
                field_b: bool,
            }

            pub extern "C" fn make_foo(value: Foo) {}
        ''', 'make_foo', namespace='foo', type_name='bar')
        assert script == PREAMBLE + dedent('''\
            namespace foo
            {
                internal static class bar
                {
                    /// <param name="value">Foo</param>
                    /// <returns>void</returns>
                    [DllImport("foo", CallingConvention = CallingConvention.Cdecl, EntryPoint = "make_foo")]
                    internal static extern void MakeFoo(Foo value);

                    /// <summary>
                    /// test documentation struct
                    /// </summary>
                    [StructLayout(LayoutKind.Sequential, CharSet = CharSet.Unicode)]
                    public struct Foo
                    {
                        /// <summary>
                        /// a field. Very important!
                        /// </summary>
                        /// <remarks>u8</remarks>
                        public byte FieldA { get; init; }
                        /// <summary>
                        /// b field. reserved or something
                        /// </summary>
                        /// <remarks>bool</remarks>
                        [field: MarshalAs(UnmanagedType.U1)]
                        public bool FieldB { get; init; }

                        public Foo(byte fieldA, bool fieldB)
                        {
                            FieldA = fieldA;
                            FieldB = fieldB;
                        }
                    }
                }
            }
            ''')

    def test_enum_with_documented_values(self, build, config):
        config.dll_name = 'foo'
        script = build('''
            #[repr(u8)]
            /// testing documentation for enum
            pub enum Foo {
                /// Enum value one
                One = 1,
                /// Enum two
                Two = 2,
                /// This is a big step!
                Five = 5
            }

            pub extern "C" fn get_foo() -> Foo { Foo::One }
        ''', 'get_foo', type_name='bar')
        assert script == PREAMBLE + dedent('''\
            internal static class bar
            {
                /// <returns>Foo</returns>
                [DllImport("foo", CallingConvention = CallingConvention.Cdecl, EntryPoint = "get_foo")]
                internal static extern Foo GetFoo();

                /// <summary>
                /// testing documentation for enum
                /// </summary>
                public enum Foo : byte
                {
                    /// <summary>
                    /// Enum value one
                    /// </summary>
                    One = 1,
                    /// <summary>
                    /// Enum two
                    /// </summary>
                    Two = 2,
                    /// <summary>
                    /// This is a big step!
                    /// </summary>
                    Five = 5,
                }
            }
            ''')

    def test_enum_by_value_round_trip(self, build):
        script = build('''
            #[repr(u8)]
            pub enum Choice { Val1, Val2 }
            pub extern "C" fn pick(choice: Choice) -> Choice { choice }
        ''', 'pick')
        assert script == PREAMBLE + dedent('''\
            internal static class NativeMethods
            {
                /// <param name="choice">Choice</param>
                /// <returns>Choice</returns>
                [DllImport("pick", CallingConvention = CallingConvention.Cdecl, EntryPoint = "pick")]
                internal static extern Choice Pick(Choice choice);

                public enum Choice : byte
                {
                    Val1,
                    Val2,
                }
            }
            ''')


# ---------------------------------------------------------------------------
# Marshaling and configuration
# ---------------------------------------------------------------------------

class TestMarshaling:
    """Directives and configuration knobs reach the output."""

    def test_string_parameter(self, build):
        script = build('pub extern "C" fn greet(name: *const c_char) {}', 'greet')
        assert 'internal static extern void Greet([MarshalAs(UnmanagedType.LPWStr)] string name);' in script

    def test_utf8_configuration(self, build, config):
        config.char_width = CharWidth.UTF8
        script = build('''
            #[repr(C)] pub struct Label { text: [c_char; 16] }
            pub extern "C" fn greet(name: *const c_char, label: Label) {}
        ''', 'greet')
        assert '[MarshalAs(UnmanagedType.LPUTF8Str)] string name' in script
        assert 'CharSet = CharSet.Ansi' in script
        assert '[field: MarshalAs(UnmanagedType.ByValTStr, SizeConst = 16)]' in script
        assert 'public string Text { get; init; }' in script

    def test_bool_return(self, build):
        script = build('pub extern "C" fn is_ready() -> bool { true }', 'is_ready')
        assert '[return: MarshalAs(UnmanagedType.U1)]\n' in script
        assert 'internal static extern bool IsReady();' in script

    def test_older_language_version(self, build, config):
        config.csharp_version = 8
        script = build('''
            #[repr(C)] pub struct Size { len: usize }
            pub extern "C" fn measure(s: Size) -> isize { 0 }
        ''', 'measure')
        assert 'public ulong Len { get; private set; }' in script
        assert 'internal static extern long Measure(Size s);' in script

    def test_native_ints(self, build):
        script = build('pub extern "C" fn measure(n: usize) -> isize { 0 }', 'measure')
        assert 'internal static extern nint Measure(nuint n);' in script

    def test_keyword_names_escaped(self, build):
        script = build('pub extern "C" fn lookup(r#type: u8, object: u8, r#ref: u8) {}', 'lookup')
        assert 'internal static extern void Lookup(byte type, byte @object, byte @ref);' in script
        assert '/// <param name="type">u8</param>' in script
        assert '/// <param name="ref">u8</param>' in script

    def test_override_applies_everywhere(self, build, config):
        config.add_override('u32', 'Word')
        script = build('''
            #[repr(u32)] pub enum Kind { A }
            #[repr(C)] pub struct Packet { id: u32, kind: Kind }
            pub extern "C" fn send(p: Packet, count: u32) -> u32 { 0 }
        ''', 'send')
        assert 'uint' not in script
        assert 'internal static extern Word Send(Packet p, Word count);' in script
        assert 'public Word Id { get; init; }' in script
        assert 'public enum Kind : Word' in script

    def test_custom_dll_name(self, build, config):
        config.dll_name = 'native_lib'
        script = build('pub extern "C" fn foo() {}', 'foo')
        assert '[DllImport("native_lib", ' in script


# ---------------------------------------------------------------------------
# Builder contract
# ---------------------------------------------------------------------------

class TestBuilder:
    """Single-use builder and batching."""

    def test_unknown_root_at_construction(self):
        with pytest.raises(UnknownRoot):
            CSharpBuilder('pub extern "C" fn other() {}', 'foo')

    def test_parse_failure_at_construction(self):
        with pytest.raises(ParseFailure):
            CSharpBuilder('pub extern "C" fn foo( {', 'foo')

    def test_build_consumes_builder(self):
        builder = CSharpBuilder('pub extern "C" fn foo() {}', 'foo')
        builder.build()
        with pytest.raises(RuntimeError):
            builder.build()

    def test_setters_do_not_touch_caller_config(self, config):
        builder = CSharpBuilder('pub extern "C" fn foo() {}', 'foo', config)
        builder.set_namespace('Native')
        builder.set_type('Api')
        script = builder.build()
        assert 'namespace Native\n{\n    internal static class Api\n' in script
        assert config.namespace is None
        assert config.type_name == 'NativeMethods'

    def test_unresolved_type_produces_no_output(self):
        builder = CSharpBuilder('pub extern "C" fn foo(x: Missing) {}', 'foo')
        with pytest.raises(UnresolvedType) as exc_info:
            builder.build()
        assert exc_info.value.name == 'Missing'
        assert exc_info.value.site == "parameter 'x' of function 'foo'"
        assert exc_info.value.kind == 'UnresolvedType'

    def test_deterministic(self):
        source = '''
            #[repr(C)] pub struct B { a: A }
            #[repr(C)] pub struct A { x: f32, y: f32 }
            #[repr(i16)] pub enum E { X = -1, Y }
            pub extern "C" fn entry(b: B, e: E) {}
        '''
        first = CSharpBuilder(source, 'entry').build()
        second = CSharpBuilder(source, 'entry').build()
        assert first == second
        assert first.index('public struct B') < first.index('public enum E') < first.index('public struct A')
        assert 'public enum E : short' in first
        assert 'X = -1,' in first

    def test_build_all(self):
        script = build_all('''
            #[repr(C)] pub struct Shared { a: u8 }
            pub extern "C" fn first(s: Shared) {}
            pub extern "C" fn second(s: Shared) {}
        ''', ['first', 'second'], Configuration(dll_name='lib'))
        assert script.count('public struct Shared') == 1
        assert script.index('First(') < script.index('public struct Shared') < script.index('Second(')

    def test_build_all_requires_entries(self):
        with pytest.raises(ValueError):
            build_all('', [])


# ---------------------------------------------------------------------------
# References and aliases
# ---------------------------------------------------------------------------

class TestReferencesAndAliases:
    """&T parameters pass by ref; aliases disappear into their targets."""

    def test_mutable_reference_parameter(self, build):
        script = build('''
            #[repr(C)] pub struct Rect { w: f32, h: f32 }
            pub extern "C" fn grow(rect: &mut Rect, ready: &bool) {}
        ''', 'grow')
        assert '/// <param name="rect">Rect&amp;</param>' in script
        assert ('internal static extern void Grow(ref Rect rect, '
                '[MarshalAs(UnmanagedType.U1)] ref bool ready);') in script
        assert 'public struct Rect' in script

    def test_reference_field_stays_handle(self, build):
        script = build('''
            #[repr(C)] pub struct Inner { a: u8 }
            #[repr(C)] pub struct Outer { inner: &'static Inner }
            pub extern "C" fn take(o: Outer) {}
        ''', 'take')
        assert 'public IntPtr Inner { get; init; }' in script
        assert 'public struct Inner' not in script

    def test_alias_parameter(self, build):
        script = build('''
            pub type Handle = u32;
            pub extern "C" fn close(h: Handle) -> Handle { h }
        ''', 'close')
        assert '/// <param name="h">Handle</param>' in script
        assert '/// <returns>Handle</returns>' in script
        assert 'internal static extern uint Close(uint h);' in script
        assert 'Handle h' not in script

    def test_alias_to_struct_emits_target(self, build):
        script = build('''
            #[repr(C)] pub struct Vec2 { x: f32, y: f32 }
            pub type Point = Vec2;
            pub extern "C" fn plot(p: Point) {}
        ''', 'plot')
        assert 'internal static extern void Plot(Vec2 p);' in script
        assert 'public struct Vec2' in script
        assert '/// <param name="p">Point</param>' in script
        assert 'struct Point' not in script


# ---------------------------------------------------------------------------
# Name clashes
# ---------------------------------------------------------------------------

class TestNameConflicts:
    """Output that would not compile is refused."""

    def test_function_and_struct_share_a_name(self, build):
        with pytest.raises(NameConflict) as exc_info:
            build('''
                #[repr(C)] pub struct Foo { a: u8 }
                pub extern "C" fn foo(x: Foo) {}
            ''', 'foo')
        assert exc_info.value.name == 'Foo'
        assert exc_info.value.first == "function 'foo'"
        assert exc_info.value.second == "struct 'Foo'"
        assert "function 'foo'" in str(exc_info.value)
        assert "struct 'Foo'" in str(exc_info.value)

    def test_property_named_after_its_struct(self, build):
        with pytest.raises(NameConflict) as exc_info:
            build('''
                #[repr(C)] pub struct Point { point: u8 }
                pub extern "C" fn take(p: Point) {}
            ''', 'take')
        assert exc_info.value.name == 'Point'
        assert exc_info.value.first == "struct 'Point'"
        assert exc_info.value.second == "field 'point' of struct 'Point'"

    def test_fields_collapse_to_one_property(self, build):
        with pytest.raises(NameConflict, match="'FooBar'"):
            build('''
                #[repr(C)] pub struct S { foo_bar: u8, fooBar: u8 }
                pub extern "C" fn take(s: S) {}
            ''', 'take')

    def test_declaration_named_after_the_class(self, build):
        with pytest.raises(NameConflict, match="class 'NativeMethods'"):
            build('''
                #[repr(u8)] pub enum NativeMethods { A }
                pub extern "C" fn take(m: NativeMethods) {}
            ''', 'take')
