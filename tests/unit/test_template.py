"""Tests for the provisioning template's lifecycle package parameter."""

import re
from pathlib import Path

import pytest

TEMPLATE = Path(__file__).parents[2] / "deploy" / "cloudformation-template.yml"


def _parameter_block(name: str) -> str:
    text = TEMPLATE.read_text()
    match = re.search(rf"^  {name}:\n((?:    .*\n)+)", text, re.MULTILINE)
    assert match, f"parameter {name} not found"
    return match.group(1)


@pytest.fixture
def package_pattern():
    block = _parameter_block("LifecyclePackage")
    match = re.search(r"^    AllowedPattern: '(.*)'$", block, re.MULTILINE)
    assert match, "LifecyclePackage has no AllowedPattern"
    return re.compile(match.group(1))


class TestLifecyclePackage:
    """The hooks must install a pinned, resolvable package source."""

    def test_has_no_default(self):
        assert "Default:" not in _parameter_block("LifecyclePackage")

    @pytest.mark.parametrize(
        "requirement",
        [
            "notebook-lifecycle==0.1.0",
            "git+https://github.com/example/notebook-lifecycle.git@v0.1.0",
            "git+https://example.com/repo.git@v0.1.0#subdirectory=lifecycle",
            "/home/ec2-user/SageMaker/notebook-lifecycle",
        ],
    )
    def test_accepts_pinned_sources(self, package_pattern, requirement):
        assert package_pattern.match(requirement)

    @pytest.mark.parametrize(
        "requirement",
        [
            "notebook-lifecycle",
            "notebook-lifecycle>=0.1",
            "git+https://github.com/example/notebook-lifecycle.git",
            "/tmp/notebook-lifecycle",
            "notebook-lifecycle==0.1.0; rm -rf /",
        ],
    )
    def test_rejects_unpinned_sources(self, package_pattern, requirement):
        assert not package_pattern.match(requirement)

    def test_hooks_install_the_parameter(self):
        text = TEMPLATE.read_text()

        assert text.count("pip install --user --quiet '${LifecyclePackage}'") == 2
