import requests

from evmtrace.decoding import SignatureLookup
from evmtrace.decoding.signatures import FOURBYTE_URL, OPENCHAIN_URL

SELECTOR = bytes.fromhex('a9059cbb')


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Answers GET requests from a URL -> response table."""

    def __init__(self, responses):
        self.responses = responses
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params))
        response = self.responses.get(url)
        if isinstance(response, Exception):
            raise response
        return response or FakeResponse({}, status_code=404)


def test_openchain_answer_is_used_first():
    session = FakeSession({
        OPENCHAIN_URL: FakeResponse({
            'ok': True,
            'result': {'function': {'0xa9059cbb': [{'name': 'transfer(address,uint256)'}]}},
        }),
    })
    lookup = SignatureLookup(session=session)

    assert lookup.lookup_signature(SELECTOR) == 'transfer(address,uint256)'
    assert session.requests == [(OPENCHAIN_URL, {'function': '0xa9059cbb'})]


def test_falls_back_to_4byte_and_prefers_oldest_entry():
    session = FakeSession({
        OPENCHAIN_URL: requests.ConnectionError("offline"),
        FOURBYTE_URL: FakeResponse({'results': [
            {'id': 31780, 'text_signature': 'many_msg_babbage(bytes1)'},
            {'id': 145, 'text_signature': 'transfer(address,uint256)'},
        ]}),
    })
    lookup = SignatureLookup(session=session)

    func = lookup.lookup_function(SELECTOR)

    assert func.signature == 'transfer(address,uint256)'
    assert func.outputs == []


def test_misses_are_cached():
    session = FakeSession({FOURBYTE_URL: FakeResponse(ValueError("not json"))})
    lookup = SignatureLookup(session=session)

    assert lookup.lookup_function(SELECTOR) is None
    assert lookup.lookup_function(SELECTOR) is None
    assert len(session.requests) == 2


def test_unparsable_signature_is_ignored():
    session = FakeSession({FOURBYTE_URL: FakeResponse({'results': [{'id': 1, 'text_signature': 'broken('}]})})

    assert SignatureLookup(session=session).lookup_function(SELECTOR) is None


def test_zero_argument_signature_is_parsed():
    session = FakeSession({FOURBYTE_URL: FakeResponse({'results': [{'id': 7, 'text_signature': 'totalSupply()'}]})})

    func = SignatureLookup(session=session).lookup_function(bytes.fromhex('18160ddd'))

    assert func.name == 'totalSupply'
    assert func.inputs == []
