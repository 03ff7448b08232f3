import json

from genmedia.normalize import normalize_json_text


def test_literal_newline_inside_string_becomes_escape():
    raw = '{"a": 1, "b": "x\ny"}'
    fixed = normalize_json_text(raw)
    assert fixed == '{"a": 1, "b": "x\\ny"}'
    assert json.loads(fixed) == {"a": 1, "b": "x\ny"}


def test_crlf_and_tab_inside_string_are_escaped():
    raw = '{"data": "<svg>\r\n\t<g/>\n</svg>"}'
    assert json.loads(normalize_json_text(raw)) == {"data": "<svg>\n\t<g/>\n</svg>"}


def test_invalid_backtick_and_dollar_escapes_are_unescaped():
    raw = '{"data": "const s = \\`${x}\\`; cost \\$5"}'
    assert json.loads(normalize_json_text(raw)) == {"data": "const s = `${x}`; cost $5"}


def test_whitespace_outside_strings_is_untouched():
    raw = '{\n\t"a": "b",\n\t"c": true\n}'
    assert normalize_json_text(raw) == raw


def test_escaped_quote_does_not_close_the_string():
    raw = '{"data": "say \\"hi\\"\nnow"}'
    assert json.loads(normalize_json_text(raw)) == {"data": 'say "hi"\nnow'}


def test_idempotent_on_valid_json():
    raw = json.dumps({"filePath": "out/a.svg", "data": "<svg>\n</svg>", "check": True})
    once = normalize_json_text(raw)
    assert once == raw
    assert normalize_json_text(once) == once


def test_empty_input():
    assert normalize_json_text("") == ""


def test_escaped_backslash_before_backtick_loses_its_escape():
    # Idempotence only holds for text without a backslash directly before ` or $.
    raw = '{"a": "\\\\`"}'
    assert json.loads(raw) == {"a": "\\`"}
    assert normalize_json_text(raw) == '{"a": "\\`"}'
