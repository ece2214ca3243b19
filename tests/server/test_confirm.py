from dataclasses import replace
from typing import MutableSequence
from unittest import IsolatedAsyncioTestCase

from ddc_lsp.lang import LANG
from ddc_lsp.server.confirm import confirm
from ddc_lsp.server.runtime import load_settings
from ddc_lsp.shared.settings import ConfirmBehavior

from .fakes import FakeEditor, FakeLSP, edit, explode, respond, settings, user_data

_SNIPPET = {"label": "foo", "insertText": "foo(${1:bar})", "insertTextFormat": 2}


class Confirm(IsolatedAsyncioTestCase):
    async def test_noop(self) -> None:
        editor = FakeEditor(["  foo"], cursor=(0, 5))
        ud = user_data({"label": "foo"}, line="  fo", suggest=2, request=4)
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(),
            snippet_engine=None,
            word="foo",
            user_data=ud,
        )
        self.assertFalse(applied)
        self.assertEqual(editor.lines, ["  foo"])
        self.assertEqual((editor.applied, editor.undo_breaks, editor.skips), ([], 0, 0))

    async def test_stale(self) -> None:
        editor = FakeEditor(["  fox"], cursor=(0, 5))
        ud = user_data({"label": "foo", "insertText": "foo()"}, line="  fo", suggest=2, request=4)
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(),
            snippet_engine=None,
            word="foo",
            user_data=ud,
        )
        self.assertFalse(applied)
        self.assertEqual(editor.lines, ["  fox"])

    async def test_unparseable(self) -> None:
        editor = FakeEditor(["foo"], cursor=(0, 3))
        ud = user_data({"label": "foo"}, line="fo", suggest=0, request=2)
        ud = replace(ud, lspitem="{")
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(),
            snippet_engine=None,
            word="foo",
            user_data=ud,
        )
        self.assertFalse(applied)

    async def test_text_mismatch(self) -> None:
        editor = FakeEditor(["x = foo"], cursor=(0, 7))
        item = {"label": "foo", "insertText": "foo()"}
        ud = user_data(item, line="x = fo", suggest=4, request=6)
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(),
            snippet_engine=None,
            word="foo",
            user_data=ud,
        )
        self.assertTrue(applied)
        self.assertEqual(editor.lines, ["x = foo()"])
        self.assertEqual(editor.cursor, (0, 9))
        self.assertEqual((editor.undo_breaks, editor.skips), (1, 1))

    async def test_additional_edits(self) -> None:
        item = {
            "label": "foo",
            "additionalTextEdits": [edit(0, 9, 9, "\nimport foo")],
        }
        ud = user_data(item, line="x = fo", suggest=4, request=6)

        editor = FakeEditor(["import os", "x = foo"], cursor=(1, 7))
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(enable_additional_text_edit=True),
            snippet_engine=None,
            word="foo",
            user_data=ud,
        )
        self.assertTrue(applied)
        self.assertEqual(editor.lines, ["import os", "import foo", "x = foo"])
        self.assertEqual(editor.cursor, (2, 7))

    async def test_additional_edits_disabled(self) -> None:
        item = {
            "label": "foo",
            "additionalTextEdits": [edit(0, 9, 9, "\nimport foo")],
        }
        ud = user_data(item, line="x = fo", suggest=4, request=6)

        editor = FakeEditor(["import os", "x = foo"], cursor=(1, 7))
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(),
            snippet_engine=None,
            word="foo",
            user_data=ud,
        )
        self.assertFalse(applied)
        self.assertEqual(editor.lines, ["import os", "x = foo"])

    async def test_scenario_b(self) -> None:
        bodies: MutableSequence[str] = []

        async def engine(body: str) -> None:
            bodies.append(body)

        editor = FakeEditor(["x = foo(bar)"], cursor=(0, 12))
        ud = user_data(_SNIPPET, line="x = fo", suggest=4, request=6)
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(),
            snippet_engine=engine,
            word="foo(bar)",
            user_data=ud,
        )
        self.assertTrue(applied)
        self.assertEqual(bodies, ["foo(${1:bar})"])
        self.assertEqual(editor.lines, ["x = "])
        self.assertEqual(editor.cursor, (0, 4))
        self.assertEqual(editor.skips, 1)

    async def test_snippet_named_engine(self) -> None:
        editor = FakeEditor(["x = foo(bar)"], cursor=(0, 12))
        ud = user_data(_SNIPPET, line="x = fo", suggest=4, request=6)
        await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(),
            snippet_engine="vsnip#anonymous",
            word="foo(bar)",
            user_data=ud,
        )
        self.assertEqual(editor.snippets, [("vsnip#anonymous", "foo(${1:bar})")])

    async def test_snippet_engine_from_settings(self) -> None:
        conf = load_settings({"snippetEngine": "luasnip"})
        editor = FakeEditor(["x = foo(bar)"], cursor=(0, 12))
        ud = user_data(_SNIPPET, line="x = fo", suggest=4, request=6)
        await confirm(
            FakeLSP(),
            editor=editor,
            settings=conf,
            snippet_engine=conf.snippet_engine or None,
            word="foo(bar)",
            user_data=ud,
        )
        self.assertEqual(editor.snippets, [("luasnip", "foo(${1:bar})")])
        self.assertEqual(editor.errors, [])

    async def test_snippet_no_engine(self) -> None:
        editor = FakeEditor(["x = foo(bar)"], cursor=(0, 12))
        ud = user_data(_SNIPPET, line="x = fo", suggest=4, request=6)
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(),
            snippet_engine=None,
            word="foo(bar)",
            user_data=ud,
        )
        self.assertTrue(applied)
        self.assertEqual(editor.lines, ["x = foo(bar)"])
        self.assertEqual(editor.cursor, (0, 12))
        self.assertEqual(editor.errors, [LANG("snippet engine missing")])

    async def test_snippet_engine_failure(self) -> None:
        async def engine(_: str) -> None:
            raise RuntimeError("bad snippet")

        editor = FakeEditor(["x = foo(bar)"], cursor=(0, 12))
        ud = user_data(_SNIPPET, line="x = fo", suggest=4, request=6)
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(),
            snippet_engine=engine,
            word="foo(bar)",
            user_data=ud,
        )
        self.assertTrue(applied)
        (error,) = editor.errors
        self.assertIn("bad snippet", error)
        self.assertEqual(editor.skips, 1)


class Replace(IsolatedAsyncioTestCase):
    _ITEM = {
        "label": "foobar",
        "textEdit": {
            "newText": "foobar",
            "insert": edit(0, 2, 4, "")["range"],
            "replace": edit(0, 2, 6, "")["range"],
        },
    }

    async def test_insert(self) -> None:
        editor = FakeEditor(["x.foobarba"], cursor=(0, 8))
        ud = user_data(self._ITEM, line="x.foba", suggest=2, request=4)
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(confirm_behavior=ConfirmBehavior.insert),
            snippet_engine=None,
            word="foobar",
            user_data=ud,
        )
        self.assertFalse(applied)
        self.assertEqual(editor.lines, ["x.foobarba"])

    async def test_replace(self) -> None:
        editor = FakeEditor(["x.foobarba"], cursor=(0, 8))
        ud = user_data(self._ITEM, line="x.foba", suggest=2, request=4)
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(confirm_behavior=ConfirmBehavior.replace),
            snippet_engine=None,
            word="foobar",
            user_data=ud,
        )
        self.assertTrue(applied)
        self.assertEqual(editor.lines, ["x.foobar"])
        self.assertEqual(editor.cursor, (0, 8))

    async def test_replace_changed_tail(self) -> None:
        editor = FakeEditor(["x.foobar)"], cursor=(0, 8))
        ud = user_data(self._ITEM, line="x.foba", suggest=2, request=4)
        applied = await confirm(
            FakeLSP(),
            editor=editor,
            settings=settings(confirm_behavior=ConfirmBehavior.replace),
            snippet_engine=None,
            word="foobar",
            user_data=ud,
        )
        self.assertTrue(applied)
        self.assertEqual(editor.lines, ["x.foobar)"])
        self.assertEqual(editor.cursor, (0, 8))


class Resolve(IsolatedAsyncioTestCase):
    async def test_overlay(self) -> None:
        lsp = FakeLSP(
            resolver=respond({"additionalTextEdits": [edit(0, 0, 0, "import foo\n")]})
        )
        editor = FakeEditor(["", "foo"], cursor=(1, 3))
        ud = user_data({"label": "foo"}, line="fo", suggest=0, request=2, resolvable=True)
        applied = await confirm(
            lsp,
            editor=editor,
            settings=settings(enable_resolve_item=True, enable_additional_text_edit=True),
            snippet_engine=None,
            word="foo",
            user_data=ud,
        )
        self.assertTrue(applied)
        self.assertEqual(editor.lines, ["import foo", "", "foo"])
        self.assertEqual(editor.cursor, (2, 3))
        ((client, item),) = lsp.resolves
        self.assertEqual((client, item), (1, {"label": "foo"}))

    async def test_failure(self) -> None:
        lsp = FakeLSP(resolver=explode(RuntimeError("resolve")))
        editor = FakeEditor(["foo"], cursor=(0, 3))
        item = {"label": "foo", "insertText": "foo()"}
        ud = user_data(item, line="fo", suggest=0, request=2, resolvable=True)
        applied = await confirm(
            lsp,
            editor=editor,
            settings=settings(enable_resolve_item=True),
            snippet_engine=None,
            word="foo",
            user_data=ud,
        )
        self.assertTrue(applied)
        self.assertEqual(editor.lines, ["foo()"])

    async def test_timeout(self) -> None:
        lsp = FakeLSP(resolver=respond({"insertText": "nope"}, delay=10))
        editor = FakeEditor(["foo"], cursor=(0, 3))
        item = {"label": "foo", "insertText": "foo()"}
        ud = user_data(item, line="fo", suggest=0, request=2, resolvable=True)
        await confirm(
            lsp,
            editor=editor,
            settings=settings(enable_resolve_item=True),
            snippet_engine=None,
            word="foo",
            user_data=ud,
        )
        self.assertEqual(editor.lines, ["foo()"])

    async def test_not_resolvable(self) -> None:
        lsp = FakeLSP(resolver=respond({"insertText": "nope"}))
        editor = FakeEditor(["foo"], cursor=(0, 3))
        ud = user_data({"label": "foo"}, line="fo", suggest=0, request=2)
        await confirm(
            lsp,
            editor=editor,
            settings=settings(enable_resolve_item=True),
            snippet_engine=None,
            word="foo",
            user_data=ud,
        )
        self.assertEqual(lsp.resolves, [])
