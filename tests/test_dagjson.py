import pytest
from hypothesis import given

from filcid import CID, dagjson
from filcid.errors import CIDError, MalformedEmbedding

from strategies import cids

V0_STR = "Qmf5Qzp6nGBku7CEn2UQx4mgN8TW69YUok36DrGa6NN893"
V1_STR = "bafkreie5qrjvaw64n4tjm6hbnm7fnqvcssfed4whsjqxzslbd3jwhsk3mm"

def test_v0_link():
    cid = CID(V0_STR)
    assert dagjson.marshal(cid) == '{"/":"Qmf5Qzp6nGBku7CEn2UQx4mgN8TW69YUok36DrGa6NN893"}'
    assert dagjson.unmarshal('{"/":"Qmf5Qzp6nGBku7CEn2UQx4mgN8TW69YUok36DrGa6NN893"}') == cid

def test_v1_link():
    cid = CID(V1_STR)
    assert dagjson.marshal(cid) == f'{{"/":"{V1_STR}"}}'
    assert dagjson.unmarshal(f'{{"/": "{V1_STR}"}}'.encode()) == cid

@given(cids)
def test_link_roundtrip(cid):
    assert dagjson.decode_link(dagjson.encode_link(cid)) == cid

def test_nested_document():
    doc = {"links": [CID(V0_STR), {"inner": CID(V1_STR)}], "n": 1.5, "ok": True}
    text = dagjson.marshal(doc)
    assert f'{{"inner":{{"/":"{V1_STR}"}}}}' in text
    assert dagjson.unmarshal(text) == doc

@pytest.mark.parametrize("obj", [
    {"/": V1_STR, "extra": 1},
    {"/": 5},
    {"/": {"bytes": "aGk"}},
    {"link": V1_STR},
    [V1_STR],
    V1_STR,
])
def test_rejects_malformed_links(obj):
    with pytest.raises(MalformedEmbedding):
        dagjson.decode_link(obj)

def test_rejects_malformed_nested_link():
    with pytest.raises(MalformedEmbedding):
        dagjson.unmarshal('{"a": {"/": {"bytes": "aGk"}}}')

def test_rejects_invalid_cid_string():
    with pytest.raises(CIDError):
        dagjson.decode_link({"/": "not a cid"})

def test_refuses_slash_keys():
    with pytest.raises(TypeError):
        dagjson.marshal({"/": 1})
