"""Tests for single-file component descriptor parsing."""

from diff_context.context.parsers.sfc import parse_sfc

COMPONENT = (
    "<template>\n"  # 1
    "  <div>{{ count }}</div>\n"  # 2
    "</template>\n"  # 3
    "\n"  # 4
    "<script>\n"  # 5
    "export default {\n"  # 6
    "  methods: {\n"  # 7
    "    inc() {\n"  # 8
    "      this.count++;\n"  # 9
    "    }\n"  # 10
    "  }\n"  # 11
    "}\n"  # 12
    "</script>\n"  # 13
    "\n"  # 14
    "<style scoped>\n"  # 15
    "div { color: red; }\n"  # 16
    "</style>\n"  # 17
)


class TestParseSfc:
    """Tests for parse_sfc()."""

    def test_blocks_are_found(self) -> None:
        descriptor = parse_sfc(COMPONENT)
        assert descriptor.template is not None
        assert descriptor.script is not None
        assert descriptor.script_setup is None
        assert len(descriptor.styles) == 1
        assert descriptor.errors == []

    def test_script_region_position(self) -> None:
        script = parse_sfc(COMPONENT).script
        assert script is not None
        assert script.name == "script"
        assert script.start_line == 5
        assert script.content.startswith("\nexport default {")
        assert script.content.endswith("}\n")

    def test_local_lines_match_file_lines(self) -> None:
        script = parse_sfc(COMPONENT).script
        assert script is not None
        local_lines = script.content.split("\n")
        assert local_lines[script.to_local(9) - 1] == "      this.count++;"

    def test_valueless_attribute(self) -> None:
        style = parse_sfc(COMPONENT).styles[0]
        assert style.attrs == {"scoped": True}
        assert style.lang is None

    def test_script_setup_with_lang(self) -> None:
        source = '<script setup lang="ts">\nconst n: number = 1;\n</script>\n'
        descriptor = parse_sfc(source)
        assert descriptor.script is None
        assert descriptor.script_setup is not None
        assert descriptor.script_setup.name == "script_setup"
        assert descriptor.script_setup.lang == "ts"
        assert descriptor.script_setup.start_line == 1

    def test_script_and_script_setup_together(self) -> None:
        source = (
            "<script>\nexport default { name: 'A' }\n</script>\n"
            "<script setup>\nconst a = 1;\n</script>\n"
        )
        descriptor = parse_sfc(source)
        assert descriptor.script is not None
        assert descriptor.script_setup is not None
        assert descriptor.script_setup.start_line == 4

    def test_duplicate_script_reported(self) -> None:
        source = "<script>\nconst a = 1;\n</script>\n<script>\nconst b = 2;\n</script>\n"
        descriptor = parse_sfc(source)
        assert descriptor.script is not None
        assert "const a" in descriptor.script.content
        assert len(descriptor.errors) == 1
        assert "only one <script>" in descriptor.errors[0]

    def test_custom_block(self) -> None:
        source = '<i18n lang="json">\n{"en": {"hi": "Hi"}}\n</i18n>\n'
        descriptor = parse_sfc(source)
        assert [b.name for b in descriptor.custom_blocks] == ["i18n"]
        assert descriptor.custom_blocks[0].lang == "json"

    def test_empty_source(self) -> None:
        descriptor = parse_sfc("")
        assert descriptor.template is None
        assert descriptor.script is None
        assert descriptor.errors == []
