def _fix_string_value(value: str) -> str:
    value = value.replace("\\`", "`")
    value = value.replace("\\$", "$")
    value = value.replace("\r\n", "\\n").replace("\n", "\\n").replace("\t", "\\t")
    return value


def normalize_json_text(text: str) -> str:
    """Repair escaping inside JSON string values emitted by the text model.

    Only characters between an opening quote and its closing quote are
    rewritten; a quote closes the string unless the character before it is a
    backslash. A string left open at the end of the input is emitted as-is.

    Valid JSON passes through unchanged unless a backslash directly precedes
    a backtick or dollar sign. An escaped backslash in that position is
    collapsed as well, leaving an invalid escape behind.
    """
    if not text:
        return ""

    inside = False
    buf: list[str] = []
    out: list[str] = []
    for i, ch in enumerate(text):
        if not inside:
            out.append(ch)
            if ch == '"':
                inside = True
            continue
        if ch == '"' and text[i - 1] != "\\":
            out.append(_fix_string_value("".join(buf)))
            out.append(ch)
            buf = []
            inside = False
            continue
        buf.append(ch)

    if buf:
        out.append("".join(buf))
    return "".join(out)
