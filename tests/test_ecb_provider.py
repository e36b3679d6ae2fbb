"""
ECB Provider Unit Tests
"""

from datetime import date

import httpx
import pytest

from conftest import mock_client
from fxsync.providers.base import FetchError
from fxsync.providers.ecb import EcbProvider


ECB_XML = """<?xml version="1.0" encoding="UTF-8"?>
<gesmes:Envelope xmlns:gesmes="http://www.gesmes.org/xml/2002-08-01" xmlns="http://www.ecb.int/vocabulary/2002-08-01/eurofxref">
    <gesmes:subject>Reference rates</gesmes:subject>
    <gesmes:Sender>
        <gesmes:name>European Central Bank</gesmes:name>
    </gesmes:Sender>
    <Cube>
        <Cube time="2024-10-17">
            <Cube currency="USD" rate="1.0845"/>
            <Cube currency="JPY" rate="162.35"/>
            <Cube currency="GBP" rate="0.8340"/>
        </Cube>
    </Cube>
</gesmes:Envelope>
"""

ECB_XML_NO_DATE = """<?xml version="1.0" encoding="UTF-8"?>
<gesmes:Envelope xmlns:gesmes="http://www.gesmes.org/xml/2002-08-01" xmlns="http://www.ecb.int/vocabulary/2002-08-01/eurofxref">
    <Cube>
        <Cube>
            <Cube currency="USD" rate="1.0845"/>
        </Cube>
    </Cube>
</gesmes:Envelope>
"""

ECB_XML_NO_RATES = """<?xml version="1.0" encoding="UTF-8"?>
<gesmes:Envelope xmlns:gesmes="http://www.gesmes.org/xml/2002-08-01" xmlns="http://www.ecb.int/vocabulary/2002-08-01/eurofxref">
    <Cube>
        <Cube time="2024-10-17"/>
    </Cube>
</gesmes:Envelope>
"""


def _responder(status_code: int = 200, content: str = ECB_XML):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, content=content.encode())

    return handler, requests


class TestEcbProvider:
    """Tests for EcbProvider."""

    @pytest.mark.asyncio
    async def test_fetch_rates_returns_normalized_records(self):
        """Three rate cubes become three EUR-based records."""
        handler, requests = _responder()

        async with mock_client(handler) as client:
            provider = EcbProvider(client=client)
            rates = await provider.fetch_rates()

        assert len(requests) == 1
        assert str(requests[0].url) == EcbProvider.DEFAULT_URL
        assert [r.target_currency for r in rates] == ["USD", "JPY", "GBP"]
        assert [r.ratio for r in rates] == [1.0845, 162.35, 0.8340]
        assert all(r.source_currency == "EUR" for r in rates)
        assert all(r.observed_at.date() == date(2024, 10, 17) for r in rates)
        assert len({r.observed_at for r in rates}) == 1

    def test_name(self):
        assert EcbProvider().name == "ECB (European Central Bank)"

    def test_is_always_enabled(self):
        assert EcbProvider().is_enabled() is True

    @pytest.mark.asyncio
    async def test_invalid_xml_raises_fetch_error(self):
        handler, _ = _responder(content="invalid xml")

        async with mock_client(handler) as client:
            provider = EcbProvider(client=client)
            with pytest.raises(FetchError) as exc_info:
                await provider.fetch_rates()

        assert exc_info.value.error_type == "PARSE_ERROR"
        assert exc_info.value.provider == "ECB (European Central Bank)"

    @pytest.mark.asyncio
    async def test_http_error_raises_fetch_error(self):
        handler, _ = _responder(status_code=500, content="")

        async with mock_client(handler) as client:
            provider = EcbProvider(client=client)
            with pytest.raises(FetchError) as exc_info:
                await provider.fetch_rates()

        assert exc_info.value.error_type == "HTTP_500"

    @pytest.mark.asyncio
    async def test_timeout_raises_fetch_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with mock_client(handler) as client:
            provider = EcbProvider(client=client, retry_attempts=1)
            with pytest.raises(FetchError) as exc_info:
                await provider.fetch_rates()

        assert exc_info.value.error_type == "TIMEOUT"
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    @pytest.mark.asyncio
    async def test_transient_transport_error_is_retried(self):
        """A connection error on the first attempt is retried."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, content=ECB_XML.encode())

        async with mock_client(handler) as client:
            provider = EcbProvider(client=client, retry_attempts=2)
            rates = await provider.fetch_rates()

        assert len(calls) == 2
        assert len(rates) == 3

    def test_parse_without_date_cube_fails(self):
        with pytest.raises(FetchError, match="Could not extract date"):
            EcbProvider().parse(ECB_XML_NO_DATE)

    def test_parse_without_rate_cubes_fails(self):
        with pytest.raises(FetchError, match="No exchange rates found"):
            EcbProvider().parse(ECB_XML_NO_RATES)

    def test_parse_rejects_non_numeric_rate(self):
        content = ECB_XML.replace('rate="162.35"', 'rate="n/a"')

        with pytest.raises(FetchError) as exc_info:
            EcbProvider().parse(content)

        assert "JPY" in str(exc_info.value)

    def test_parse_ignores_cubes_outside_ecb_namespace(self):
        content = ECB_XML.replace(
            "<gesmes:subject>Reference rates</gesmes:subject>",
            '<gesmes:Cube currency="XXX" rate="1.0"/>'
        )

        rates = EcbProvider().parse(content)

        assert "XXX" not in [r.target_currency for r in rates]
