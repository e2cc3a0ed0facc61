"""Тесты модуля wb_api на моках requests.Session."""

from unittest.mock import MagicMock

import pytest
import requests

from src.config import Settings
from src.errors import NetworkError, NoData, RateLimited, RetryExhausted, UpstreamError
from src.retry import RetryPolicy
from src.wb_api import WBClient


def _response(status_code=200, json_data=None, content=b"", text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 400
    resp.json.return_value = json_data
    resp.content = content
    resp.text = text
    return resp


def _client(*responses, sleep=None):
    session = MagicMock()
    session.request.side_effect = list(responses)
    policy = RetryPolicy(retry_on=(RateLimited, NetworkError), sleep=sleep or (lambda s: None))
    settings = Settings(api_token="secret-token")
    return WBClient(settings, session=session, stats_policy=policy), session


class TestRequest:
    """Коды ответа → исключения."""

    def test_auth_header(self):
        _, session = _client()
        session.headers.update.assert_called_once()
        headers = session.headers.update.call_args.args[0]
        assert headers["Authorization"] == "secret-token"

    def test_429(self):
        client, _ = _client(_response(429))
        with pytest.raises(RateLimited):
            client._request("GET", "https://x/y")

    def test_204(self):
        client, _ = _client(_response(204))
        with pytest.raises(NoData):
            client._request("GET", "https://x/y")

    def test_500(self):
        client, _ = _client(_response(500, text="oops"))
        with pytest.raises(UpstreamError) as exc_info:
            client._request("GET", "https://x/y")
        assert exc_info.value.status == 500
        assert exc_info.value.body == "oops"

    def test_network(self):
        client, _ = _client(requests.ConnectionError("down"))
        with pytest.raises(NetworkError):
            client._request("GET", "https://x/y")


class TestMalformedBody:
    """Ответ 200, но тело не то, что ожидалось."""

    def test_non_json_body(self):
        resp = _response(200, text="<html>oops</html>")
        resp.json.side_effect = ValueError("Expecting value")
        client, _ = _client(resp)
        with pytest.raises(UpstreamError) as exc_info:
            client.list_active_campaigns()
        assert exc_info.value.status == 200

    def test_non_json_not_retried(self):
        resp = _response(200, text="oops")
        resp.json.side_effect = ValueError("Expecting value")
        client, session = _client(resp)
        with pytest.raises(UpstreamError):
            client.fetch_statistics(["1"], "2024-01-05")
        assert session.request.call_count == 1

    def test_report_list_as_list(self):
        client, _ = _client(_response(200, [{"id": "abc"}]))
        with pytest.raises(UpstreamError):
            client.list_report_ids()

    def test_non_dict_items_skipped(self):
        client, _ = _client(_response(200, [{"advertId": 1}, "junk", 5]))
        assert client.list_active_campaigns() == ["1"]


class TestListActiveCampaigns:
    """Тесты list_active_campaigns."""

    def test_ids_as_strings(self):
        client, session = _client(_response(200, [{"advertId": 123}, {"advertId": 456}]))
        assert client.list_active_campaigns() == ["123", "456"]
        method, url = session.request.call_args.args
        assert method == "POST"
        assert url == "https://advert-api.wildberries.ru/adv/v1/promotion/adverts"
        assert session.request.call_args.kwargs["params"] == {"status": 9}

    def test_204_is_empty(self):
        """204 — кампаний нет, а не ошибка."""
        client, _ = _client(_response(204))
        assert client.list_active_campaigns() == []

    def test_retry_on_429(self):
        waits = []
        client, session = _client(
            _response(429), _response(200, [{"advertId": 1}]), sleep=waits.append,
        )
        assert client.list_active_campaigns() == ["1"]
        assert waits == [70.0]
        assert session.request.call_count == 2

    def test_retry_exhausted(self):
        client, session = _client(*[_response(429)] * 4)
        with pytest.raises(RetryExhausted):
            client.list_active_campaigns()
        assert session.request.call_count == 4


class TestFetchStatistics:
    """Тесты fetch_statistics."""

    def test_batched_body(self):
        client, session = _client(_response(200, []))
        client.fetch_statistics(["1", "2"], "2024-01-05")
        session.request.assert_called_once()
        assert session.request.call_args.args[1].endswith("/adv/v2/fullstats")
        assert session.request.call_args.kwargs["json"] == [
            {"id": 1, "dates": ["2024-01-05"]},
            {"id": 2, "dates": ["2024-01-05"]},
        ]

    def test_parse_records(self):
        data = [
            {"advertId": 123, "views": 1000, "clicks": 200, "atbs": 50, "orders": 10, "sum": 512.3},
            {"advertId": 456},
        ]
        client, _ = _client(_response(200, data))
        stats = client.fetch_statistics(["123", "456"], "2024-01-05")

        assert [s.campaign_id for s in stats] == ["123", "456"]
        assert stats[0].views == 1000
        assert stats[0].clicks_cart == "25.00%"
        assert stats[0].cart_order == "20.00%"
        assert stats[0].revenue == "₽512.3"
        assert stats[1].views == 0
        assert stats[1].clicks_cart == "0.00%"

    def test_204_is_empty(self):
        client, _ = _client(_response(204))
        assert client.fetch_statistics(["1"], "2024-01-05") == []

    def test_no_ids_no_request(self):
        client, session = _client()
        assert client.fetch_statistics([], "2024-01-05") == []
        session.request.assert_not_called()


class TestReports:
    """Тесты list_report_ids и download_report."""

    def test_list_report_ids(self):
        client, session = _client(_response(200, {"data": [{"id": "abc"}, {"id": "def"}]}))
        assert client.list_report_ids() == ["abc", "def"]
        assert session.request.call_args.args == (
            "GET", "https://seller-analytics-api.wildberries.ru/api/v2/nm-report/downloads",
        )

    def test_download_report(self):
        client, session = _client(_response(200, content=b"PK..."))
        assert client.download_report("abc") == b"PK..."
        assert session.request.call_args.args[1].endswith("/api/v2/nm-report/downloads/file/abc")

    def test_download_report_429_not_retried_here(self):
        client, session = _client(_response(429))
        with pytest.raises(RateLimited):
            client.download_report("abc")
        assert session.request.call_count == 1
