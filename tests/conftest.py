"""Shared fixtures for martini_deploy tests."""
import pytest

from martini_deploy.models import DeployConfig


@pytest.fixture
def packages_root(tmp_path):
    """Package root with directories a, b, c and a stray file."""
    root = tmp_path / "packages"
    for name in ("c", "a", "b"):
        package = root / name
        (package / "conf").mkdir(parents=True)
        (package / "package.xml").write_text(f"<package name='{name}'/>", encoding="utf-8")
        (package / "conf" / "properties.conf").write_text("key=value\n", encoding="utf-8")
    (root / "README.md").write_text("not a package", encoding="utf-8")
    return root


@pytest.fixture
def config(packages_root):
    return DeployConfig(
        base_url="https://martini.example.com/",
        access_token="secret-token",
        package_dir=packages_root,
        delay_seconds=0,
    )
