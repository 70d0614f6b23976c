"""
Unit tests for the oracle output sanitizer.
"""

from codeport.translator.sanitizer import (
    drop_epilogue,
    find_code_start,
    sanitize,
    strip_fences,
    strip_residuals,
)


def test_fenced_output_with_trailing_chatter():
    raw = "```swift\nimport Foo\nstruct X {}\n``` chatter"
    assert sanitize(raw) == "import Foo\nstruct X {}"


def test_preamble_before_first_anchor_is_dropped():
    raw = "Sure! Here is the class you asked for:\n\nimport SwiftUI\n\nstruct ContentView: View {\n}\n"
    result = sanitize(raw)
    assert result.startswith("import SwiftUI")
    assert "Sure!" not in result


def test_no_anchor_yields_empty():
    assert sanitize("I cannot convert this file, sorry.") == ""
    assert sanitize("") == ""
    assert sanitize(None) == ""


def test_attribute_anchor():
    raw = "Output:\n@Observable\nfinal class Store {\n    var count = 0\n}"
    assert sanitize(raw).startswith("@Observable")


def test_declaration_anchor_with_modifiers():
    assert find_code_start("text\npublic final class A {}") == 5
    assert find_code_start("no code here") == -1


def test_earliest_anchor_wins():
    text = "struct A {}\nimport Foo\n"
    assert find_code_start(text) == 0


def test_epilogue_after_last_brace_is_dropped():
    text = "struct A {\n}\n\nThis struct mirrors the Kotlin class."
    assert drop_epilogue(text) == "struct A {\n}"


def test_code_like_tail_is_kept():
    text = "struct A {\n}\nlet shared = A()"
    assert drop_epilogue(text) == text


def test_short_syntax_tail_is_kept():
    text = "foo {\n})"
    assert drop_epilogue(text) == text


def test_strip_fences_keeps_inner_text():
    assert strip_fences("```kotlin\nval x = 1\n```") == "\nval x = 1\n"


def test_package_line_and_data_class_are_rewritten():
    text = "package com.example.app\nimport Foundation\ndata class User {}"
    result = strip_residuals(text)
    assert "package" not in result
    assert "struct User {}" in result


def test_swiftdata_import_is_added_for_model():
    result = sanitize("@Model\nclass Item {\n    var name: String = \"\"\n}")
    assert result.startswith("import SwiftData\n@Model")


def test_swiftdata_import_not_duplicated():
    raw = "import SwiftData\n@Model\nclass Item {}"
    assert sanitize(raw).count("import SwiftData") == 1


def test_prose_mentioning_attributes_is_dropped():
    raw = "import SwiftUI\nstruct A: View {\n}\n\nThis view uses @State to hold the counter."
    assert sanitize(raw) == "import SwiftUI\nstruct A: View {\n}"


def test_markdown_explanation_after_code_is_dropped():
    raw = "import SwiftUI\nstruct A: View {\n}\n\n### Explanation\nThe struct replaces the Kotlin class."
    assert sanitize(raw) == "import SwiftUI\nstruct A: View {\n}"


def test_prose_with_assignment_is_dropped():
    text = "struct A {\n}\n\nNote that `count = 0` resets the state."
    assert drop_epilogue(text) == "struct A {\n}"


def test_trailing_declarations_are_kept():
    text = "struct A {\n}\n\n#if DEBUG\nlet debugEnabled = true\n#endif"
    assert drop_epilogue(text) == text
    text = "struct A {\n}\n\ntypealias Alias = A"
    assert drop_epilogue(text) == text
