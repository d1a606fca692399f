"""Shared test fixtures."""
import pytest
from unittest.mock import AsyncMock
from bill_router.config import Settings
from bill_router.llm.base import VisionExtractor
from bill_router.models.policy import RoutingPolicy
from bill_router.routing.endpoints import Endpoints
from tests.factories import make_electricity_bill_dict, make_extraction_dict


@pytest.fixture
def mock_settings():
    """Create test settings with dummy values."""
    return Settings(
        onebill_api_key="test-onebill-key",
        llm_api_key="test-llm-key",
        file_base_url="https://files.test/bills",
        database_url="",
        electricity_endpoint="https://billing.test/api/electricity-file",
        gas_endpoint="https://billing.test/api/gas-file",
        meter_endpoint="https://billing.test/api/meter-file",
    )


@pytest.fixture
def policy():
    return RoutingPolicy()


@pytest.fixture
def endpoints(mock_settings):
    return Endpoints.from_settings(mock_settings)


@pytest.fixture
def mock_extractor():
    """Vision extractor returning a plain electricity bill."""
    extractor = AsyncMock(spec=VisionExtractor)
    extractor.get_model_name.return_value = "mock-vision-model"
    extractor.extract.return_value = make_extraction_dict(electricity=[make_electricity_bill_dict()])
    return extractor
