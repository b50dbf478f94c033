"""
Check that integration and unit test modules are marked consistently.

Every test in a `*__it.py` module must carry the integration mark, either on the
module through `pytestmark` or on the test itself. Unit test modules
(`*__test.py`) must not carry it, or they would be skipped by the unit run.
"""

import ast
import sys
from pathlib import Path

PACKAGE_ROOT = Path("src/logtrim")


def _is_integration_mark(node):
    if isinstance(node, ast.Call):
        node = node.func
    if isinstance(node, ast.List):
        return any(_is_integration_mark(element) for element in node.elts)
    return (
        isinstance(node, ast.Attribute)
        and node.attr == "integration"
        and (
            (isinstance(node.value, ast.Name) and node.value.id == "mark")
            or (isinstance(node.value, ast.Attribute) and node.value.attr == "mark")
        )
    )


def _module_mark(tree):
    for node in tree.body:
        if not isinstance(node, ast.Assign):
            continue
        names = [target.id for target in node.targets if isinstance(target, ast.Name)]
        if "pytestmark" in names:
            return node.value
    return None


def _test_functions(tree):
    return [
        node
        for node in tree.body
        if isinstance(node, ast.FunctionDef) and node.name.startswith("test")
    ]


def unmarked_integration_tests(file):
    tree = ast.parse(file.read_text(), filename=str(file))
    module_mark = _module_mark(tree)
    if module_mark is not None and _is_integration_mark(module_mark):
        return []

    return [
        f"{file}:{node.lineno} {node.name}"
        for node in _test_functions(tree)
        if not any(_is_integration_mark(decorator) for decorator in node.decorator_list)
    ]


def marked_unit_tests(file):
    tree = ast.parse(file.read_text(), filename=str(file))
    module_mark = _module_mark(tree)
    if module_mark is not None and _is_integration_mark(module_mark):
        return [f"{file}:{module_mark.lineno} pytestmark"]

    return [
        f"{file}:{node.lineno} {node.name}"
        for node in _test_functions(tree)
        if any(_is_integration_mark(decorator) for decorator in node.decorator_list)
    ]


def main():
    unmarked = [
        line
        for file in sorted(PACKAGE_ROOT.rglob("*__it.py"))
        for line in unmarked_integration_tests(file)
    ]
    misplaced = [
        line for file in sorted(PACKAGE_ROOT.rglob("*__test.py")) for line in marked_unit_tests(file)
    ]

    if unmarked:
        print("Missing @pytest.mark.integration or pytestmark:")
        for line in unmarked:
            print("  -", line)
    if misplaced:
        print("Unit test modules marked as integration (rename them to *__it.py):")
        for line in misplaced:
            print("  -", line)

    return 1 if unmarked or misplaced else 0


if __name__ == "__main__":
    sys.exit(main())
