# tests/test_validator.py

from services.validator import (
    DISALLOWED_IMPORT,
    FORBIDDEN_CONSTRUCT,
    MISSING_EXPORT,
    MISSING_IMPORT,
    CodeValidator,
    repair,
    validate,
    validate_and_repair,
)


def test_compliant_source_has_no_violations(component_source):
    result = validate(component_source("Scene1"), "Scene1")
    assert result.valid
    assert result.violations == []


def test_misnamed_export_is_repaired(component_source):
    """
    Source that is compliant except for its export name reports exactly one
    violation, and repair renames the export so it validates cleanly.
    """
    # Input: a correct component exported under the single-scene name
    source = component_source("MyVideo")

    result = validate(source, "Scene1")
    assert [v.kind for v in result.violations] == [MISSING_EXPORT]

    repaired = repair(source, "Scene1")
    assert "export const Scene1: React.FC" in repaired
    assert validate(repaired, "Scene1").valid


def test_exported_function_is_renamed(component_source):
    source = component_source("X").replace(
        "export const X: React.FC = () => {", "export function Animation() {"
    )
    repaired = repair(source, "MyVideo")
    assert "export function MyVideo()" in repaired
    assert validate(repaired, "MyVideo").valid


def test_single_unexported_component_gets_exported(component_source):
    source = component_source("X").replace("export const X", "const Intro")
    repaired = repair(source, "Scene0")
    assert "export const Scene0: React.FC" in repaired


def test_default_exported_component_is_exported_by_name(component_source):
    """
    A component declared under its own name and default-exported at the end
    becomes the named export, and no reference to the old name is left behind.
    """
    # Input: `const Intro: React.FC = ...` followed by `export default Intro;`
    source = component_source("X").replace("export const X", "const Intro") + "\nexport default Intro;\n"

    repaired, result = validate_and_repair(source, "Scene0")

    assert result.valid
    assert "export const Scene0: React.FC" in repaired
    assert "Intro" not in repaired
    assert "export default" not in repaired


def test_default_export_without_type_annotation(component_source):
    source = component_source("X").replace("export const X: React.FC", "const Intro") + "export default Intro;\n"

    repaired, result = validate_and_repair(source, "Scene1")

    assert result.valid
    assert "export const Scene1 = () =>" in repaired
    assert "Intro" not in repaired


def test_default_exported_function_is_renamed(component_source):
    source = component_source("X").replace(
        "export const X: React.FC = () => {", "export default function Intro() {"
    )

    repaired, result = validate_and_repair(source, "Scene0")

    assert result.valid
    assert "export function Scene0()" in repaired
    assert "export default" not in repaired


def test_renamed_component_references_follow_the_new_name(component_source):
    source = component_source("MyVideo") + "MyVideo.displayName = 'MyVideo';\nexport { MyVideo };\n"

    repaired = repair(source, "Scene3")

    assert "Scene3.displayName = 'MyVideo';" in repaired
    assert "export { MyVideo }" not in repaired
    assert validate(repaired, "Scene3").valid


def test_missing_imports_are_injected(component_source):
    source = "\n".join(component_source("MyVideo").splitlines()[2:])

    result = validate(source, "MyVideo")
    assert [v.kind for v in result.violations] == [MISSING_IMPORT, MISSING_IMPORT]

    validator = CodeValidator(source, "MyVideo")
    repaired = validator.run()
    assert repaired.splitlines()[0] == "import React from 'react';"
    assert "from 'remotion';" in repaired.splitlines()[1]
    assert len(validator.fixes_applied) == 2
    assert validate(repaired, "MyVideo").valid


def test_forbidden_construct_is_fatal(component_source):
    source = component_source("MyVideo").replace(
        "const frame = useCurrentFrame();", "const [frame] = useState(0);"
    )

    repaired, result = validate_and_repair(source, "MyVideo")

    assert not result.valid
    assert [v.kind for v in result.fatal] == [FORBIDDEN_CONSTRUCT]
    assert "Forbidden pattern found: useState" in result.messages
    # Forbidden content is never rewritten.
    assert repaired == source


def test_timers_and_dynamic_code_are_forbidden(component_source):
    for snippet in ("setTimeout(() => {}, 10);", "eval('1');", "fetch('/x');", "require('fs');"):
        source = component_source("MyVideo") + snippet
        assert any(v.kind == FORBIDDEN_CONSTRUCT for v in validate(source, "MyVideo").violations), snippet


def test_disallowed_import_is_fatal(component_source):
    source = "import _ from 'lodash';\n" + component_source("MyVideo")

    result = validate(source, "MyVideo")

    assert [v.kind for v in result.violations] == [DISALLOWED_IMPORT]
    assert "lodash" in result.messages[0]
    assert not result.violations[0].repairable


def test_repair_is_idempotent(component_source):
    source = "\n".join(component_source("Video").splitlines()[2:])
    once = repair(source, "Scene2")
    assert repair(once, "Scene2") == once


def test_validate_and_repair_returns_valid_source_untouched(component_source):
    source = component_source("MyVideo")
    repaired, result = validate_and_repair(source, "MyVideo")
    assert result.valid
    assert repaired == source


def test_empty_source_cannot_be_repaired():
    _, result = validate_and_repair("   ", "MyVideo")
    assert not result.valid
    assert [v.kind for v in result.violations] == [MISSING_EXPORT]
