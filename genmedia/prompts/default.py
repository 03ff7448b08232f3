from __future__ import annotations

from textwrap import dedent

SVG_PROMPT = dedent(
    """
    # Role
    You are a skilled graphic designer and web designer. Generate an SVG based on the following information.

    # Output File Path
    {{FILE_PATH}}

    # Output Image MIME Type
    {{MIME}}

    # Prerequisites
    - Follow the instructions exactly. Do not make unrelated changes.

    # Important: Output Rules
    - **No omissions are allowed**. You must output the **complete file content from beginning to end**.

    # Result Format
    Output in the following JSON format.
    {
        "filePath": "The output file path",
        "data": "The complete generated file content without any omissions",
        "mime": "The MIME type of the generated file",
        "check": "true if the prompt instructions were followed, false otherwise"
    }

    # Instructions
    {{INSTRUCTIONS}}
    """
)

IMAGE_PROMPT = dedent(
    """
    # Role
    You are a skilled graphic designer and web designer. Generate an image based on the following information.

    # Output File Path
    {{FILE_PATH}}

    # Output Image MIME Type
    {{MIME}}

    # Prerequisites
    - Follow the instructions exactly. Do not make unrelated changes.

    # Instructions
    {{INSTRUCTIONS}}
    """
)

DEFAULT_PROMPTS: dict[str, str] = {
    "svg": SVG_PROMPT,
    "image": IMAGE_PROMPT,
}

# Structured-output contract for the SVG path.
SVG_RESPONSE_SCHEMA: dict[str, object] = {
    "properties": {
        "filePath": {"type": "STRING", "description": "The output file path"},
        "data": {
            "type": "STRING",
            "description": "The complete generated file content without any omissions",
        },
        "mime": {"type": "STRING", "description": "The MIME type of the generated file"},
        "check": {
            "type": "BOOLEAN",
            "description": "true if the prompt instructions were followed, false otherwise",
        },
    },
    "required": ["filePath", "data", "mime", "check"],
}


def render(template: str, *, instructions: str, file_path: str, mime: str) -> str:
    return (
        template.replace("{{FILE_PATH}}", file_path)
        .replace("{{MIME}}", mime)
        .replace("{{INSTRUCTIONS}}", instructions)
    )
