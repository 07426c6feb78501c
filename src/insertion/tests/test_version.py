import insertion
from insertion.utils.logging import get_pyproject_value


def test_version_matches_project_metadata():
    assert insertion.__version__ == get_pyproject_value("project.version")
