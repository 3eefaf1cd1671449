# richtext/markdown/config.py


def get_markdown_config():
    """
    Configuration for the markdown-it-py parser behind the event stream.

    The CommonMark preset covers paragraphs, headings, block quotes, lists,
    code blocks, emphasis, links, images and raw HTML. Tables and
    strikethrough are enabled on top of it, with task list and footnote
    plugins from mdit-py-plugins. Their tags reach the renderer, which keeps
    the text and ignores the structure.

    ``disable`` switches off core rules that would break source offsets:
    ``text_join`` glues escapes and entities into neighbouring text, and
    ``footnote_tail`` moves footnote definitions to the end of the document.
    """
    return {
        "preset": "commonmark",
        "options": {
            "html": True,
            # Smart quotes would rewrite text and break source offsets
            "typographer": False,
        },
        "enable": [
            "table",
            "strikethrough",
        ],
        "plugins": [
            "tasklists",
            "footnote",
        ],
        # `# Title {#id .class}` renders as "Title"
        "heading_attributes": True,
        "disable": [
            "text_join",
            "footnote_tail",
            # `^[inline]` footnotes stay literal text
            "footnote_inline",
        ],
    }
