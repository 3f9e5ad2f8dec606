import pytest
import requests
from unittest.mock import MagicMock, patch
from sources.geocoder import Address, Geocoder


@pytest.fixture
def mock_geocoder(tmp_path):
    cache_path = str(tmp_path / "test_geo.db")
    with patch('requests.Session') as mock_session:
        geocoder = Geocoder(cache_path=cache_path)
        geocoder.session = mock_session.return_value
        yield geocoder


def test_address_parse():
    """Verify state and postcode are split off the last part."""
    address = Address.parse("12 Smith St, Fitzroy, VIC 3065")
    assert address.address_line == "12 Smith St, Fitzroy"
    assert address.suburb == "Fitzroy"
    assert address.state == "VIC"
    assert address.postcode == "3065"
    assert address.to_query() == "12 Smith St, Fitzroy, VIC, Australia"


def test_address_parse_defaults_to_vic():
    """Verify addresses without a state default to Victoria."""
    address = Address.parse("1 Spring St")
    assert address.address_line == "1 Spring St"
    assert address.state == "VIC"
    assert address.suburb == ""


def test_geocode_success(mock_geocoder):
    """Verify geocoding success."""
    mock_response = MagicMock()
    mock_response.json.return_value = [{
        "lat": "-37.8136",
        "lon": "144.9631",
        "display_name": "Melbourne, Victoria, Australia",
        "type": "city",
    }]
    mock_geocoder.session.get.return_value = mock_response

    result = mock_geocoder.geocode(Address("Melbourne"))

    assert result.latitude == -37.8136
    assert result.longitude == 144.9631
    assert result.display_name == "Melbourne, Victoria, Australia"
    params = mock_geocoder.session.get.call_args[1]["params"]
    assert params["q"] == "Melbourne, VIC, Australia"
    assert params["limit"] == 1


def test_geocode_uses_cache(mock_geocoder):
    """Verify a repeated query is answered from the cache."""
    mock_response = MagicMock()
    mock_response.json.return_value = [{"lat": "-37.8", "lon": "145.0", "display_name": "X", "type": "house"}]
    mock_geocoder.session.get.return_value = mock_response

    first = mock_geocoder.geocode(Address("1 Test St"))
    second = mock_geocoder.geocode(Address("1 Test St"))

    assert first.latitude == second.latitude
    assert mock_geocoder.session.get.call_count == 1


def test_geocode_no_results(mock_geocoder):
    """Verify an empty result list yields None."""
    mock_response = MagicMock()
    mock_response.json.return_value = []
    mock_geocoder.session.get.return_value = mock_response

    assert mock_geocoder.geocode(Address("Nowhere Rd")) is None


def test_geocode_network_failure(mock_geocoder):
    """Verify persistent network errors yield None rather than raising."""
    mock_geocoder.session.get.side_effect = requests.ConnectionError("down")

    with patch('time.sleep'):
        assert mock_geocoder.geocode(Address("1 Spring St")) is None
