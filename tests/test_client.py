import requests

from stock_insight.client import AnalysisClient
from stock_insight.config import Settings


class _Resp:
    def __init__(self, status_code=200, body=None, bad_json=False):
        self.status_code = status_code
        self._body = body
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._body


class _Session:
    def __init__(self, resp=None, exc=None):
        self.headers = {"User-Agent": "caller"}
        self.calls = []
        self.sent_headers = []
        self._resp = resp
        self._exc = exc

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, timeout))
        self.sent_headers.append(headers)
        if self._exc is not None:
            raise self._exc
        return self._resp


def _client(settings, **kw):
    return AnalysisClient(
        base_url="http://api.test/api/", timeout=3.0, session=_Session(**kw), settings=settings
    )


def test_url(settings):
    client = _client(settings, resp=_Resp(body={}))
    assert client.analysis_url(" tsla ") == "http://api.test/api/analysis/TSLA"


def test_accept_header_sent_per_request(settings):
    client = _client(settings, resp=_Resp(body={}))
    client.fetch_analysis("tsla")
    assert client.session.sent_headers == [{"Accept": "application/json"}]
    assert client.session.headers == {"User-Agent": "caller"}


def test_defaults_come_from_settings(clean_env, tmp_path):
    clean_env.setenv("DATA_DIR", str(tmp_path))
    clean_env.setenv("ANALYSIS_API_BASE_URL", "http://backend:9000/v1/")
    clean_env.setenv("ANALYSIS_API_TIMEOUT", "4.5")
    client = AnalysisClient(session=_Session(), settings=Settings())
    assert client.base_url == "http://backend:9000/v1"
    assert client.timeout == 4.5


def test_fetch_success(settings):
    client = _client(settings, resp=_Resp(body={"symbol": "TSLA", "price": 250}))
    assert client.fetch_analysis("tsla") == {"symbol": "TSLA", "price": 250}
    assert client.session.calls == [("http://api.test/api/analysis/TSLA", 3.0)]


def test_fetch_blank_symbol_makes_no_request(settings):
    client = _client(settings, resp=_Resp(body={}))
    assert client.fetch_analysis("  ") is None
    assert client.session.calls == []


def test_fetch_failures_return_none(settings):
    assert _client(settings, exc=requests.ConnectionError("down")).fetch_analysis("X") is None
    assert _client(settings, exc=requests.Timeout()).fetch_analysis("X") is None
    assert _client(settings, resp=_Resp(status_code=404, body={})).fetch_analysis("X") is None
    assert _client(settings, resp=_Resp(bad_json=True)).fetch_analysis("X") is None
    assert _client(settings, resp=_Resp(body=["not", "a", "dict"])).fetch_analysis("X") is None


def test_analyze_symbol(settings):
    body = {
        "price": 250.0,
        "aiAnalysis": "Shares rose 3% this session.",
        "recentNews": [{"title": "Deliveries beat expectations"}],
    }
    client = _client(settings, resp=_Resp(body=body))
    result = client.analyze_symbol("tsla", context={"volume": 1000})

    assert result.symbol == "TSLA"
    assert result.resolved.price == 250.0
    assert result.resolved.change_percent == 3.0
    assert result.resolved.volume == 1000
    assert result.counts.positive == 1


def test_analyze_symbol_unavailable(settings):
    client = _client(settings, resp=_Resp(status_code=500))
    assert client.analyze_symbol("tsla") is None
