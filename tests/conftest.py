import pytest

from tests.unit.base import make_config


@pytest.fixture
def pipeline_config(tmp_path):
    """PipelineConfig rooted in a temporary directory, directories created."""
    config = make_config(tmp_path)
    config.paths.ensure()
    return config
