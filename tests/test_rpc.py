import base64
from unittest import mock

import pytest
import requests

from soltx.core.assembler import assemble_transaction
from soltx.core.errors import RpcError
from soltx.core.keys import Hash, SYSTEM_PROGRAM_ID
from soltx.core.rpc import Commitment, RpcClient, SendTransactionConfig, TransactionEncoding
from soltx.core.submission import DEFAULT_SEND_CONFIG
from soltx.core.transactions import Instruction

BLOCKHASH = Hash(bytes(range(32)))


def response(body=None, status_code=200, reason="OK"):
    resp = mock.Mock(status_code=status_code, reason=reason)
    if body is None:
        resp.json.side_effect = ValueError("no JSON")
    else:
        resp.json.return_value = body
    return resp


def result(value, request_id=1):
    return response({'jsonrpc': '2.0', 'id': request_id, 'result': value})


def rpc_client(*responses, **kwargs):
    session = mock.Mock()
    session.post.side_effect = list(responses)
    kwargs.setdefault('poll_interval', 0)
    return RpcClient("http://localhost:8899", session=session, **kwargs), session


def sent(session, index=0):
    return session.post.call_args_list[index].kwargs['json']


@pytest.fixture
def signed_tx(keypair):
    return assemble_transaction([Instruction(SYSTEM_PROGRAM_ID, [], b"")], keypair, BLOCKHASH)


def test_get_recent_blockhash():
    client, session = rpc_client(result({
        'context': {'slot': 1},
        'value': {'blockhash': str(BLOCKHASH), 'feeCalculator': {'lamportsPerSignature': 5000}},
    }))
    blockhash, fees = client.recent_block_reference()

    assert blockhash == BLOCKHASH
    assert fees.lamports_per_signature == 5000
    request = sent(session)
    assert request['jsonrpc'] == '2.0'
    assert request['method'] == 'getRecentBlockhash'
    assert request['params'] == [{'commitment': 'confirmed'}]


def test_falls_back_to_get_latest_blockhash():
    client, session = rpc_client(
        response({'jsonrpc': '2.0', 'id': 1, 'error': {'code': -32601, 'message': 'Method not found'}}),
        result({'context': {'slot': 1}, 'value': {'blockhash': str(BLOCKHASH), 'lastValidBlockHeight': 99}}),
    )
    blockhash, fees = client.recent_block_reference()

    assert blockhash == BLOCKHASH
    assert fees.lamports_per_signature == 0
    assert [sent(session, i)['method'] for i in range(2)] == ['getRecentBlockhash', 'getLatestBlockhash']


def test_json_rpc_error_is_kept_verbatim():
    client, _ = rpc_client(response({
        'jsonrpc': '2.0', 'id': 1,
        'error': {'code': -32005, 'message': 'Node is behind by 42 slots', 'data': {'numSlotsBehind': 42}},
    }))
    with pytest.raises(RpcError) as exc:
        client.recent_block_reference()
    assert exc.value.code == -32005
    assert exc.value.data == {'numSlotsBehind': 42}
    assert "Node is behind by 42 slots" in str(exc.value)


def test_malformed_blockhash_is_rpc_error():
    client, _ = rpc_client(result({'value': {'blockhash': 'not-a-hash'}}))
    with pytest.raises(RpcError):
        client.recent_block_reference()


def test_http_error_without_json():
    client, _ = rpc_client(response(None, status_code=502, reason="Bad Gateway"))
    with pytest.raises(RpcError) as exc:
        client.recent_block_reference()
    assert "502" in str(exc.value)


def test_transport_errors_are_rpc_errors():
    client, _ = rpc_client(requests.ConnectionError("connection refused"))
    with pytest.raises(RpcError) as exc:
        client.recent_block_reference()
    assert "connection refused" in str(exc.value)


def test_timeouts_are_rpc_errors():
    client, _ = rpc_client(requests.Timeout())
    with pytest.raises(RpcError, match="timed out"):
        client.recent_block_reference()


def test_send_transaction_with_default_policy(signed_tx):
    client, session = rpc_client(result(str(signed_tx.signature())))
    signature = client.send_transaction(signed_tx, DEFAULT_SEND_CONFIG)

    assert signature == signed_tx.signature()
    request = sent(session)
    assert request['method'] == 'sendTransaction'
    wire, options = request['params']
    assert base64.b64decode(wire) == signed_tx.serialize()
    assert options == {'skipPreflight': True, 'encoding': 'base64'}


def test_send_transaction_options(signed_tx):
    client, session = rpc_client(result(str(signed_tx.signature())))
    config = SendTransactionConfig(
        skip_preflight=False,
        preflight_commitment=Commitment.FINALIZED,
        encoding=TransactionEncoding.BASE58,
    )
    client.send_transaction(signed_tx, config)

    wire, options = sent(session)['params']
    assert wire == TransactionEncoding.BASE58.encode(signed_tx.serialize())
    assert options == {'skipPreflight': False, 'encoding': 'base58', 'preflightCommitment': 'finalized'}


def status(confirmation, err=None):
    return {'slot': 10, 'confirmations': 0, 'err': err, 'confirmationStatus': confirmation}


def test_confirm_waits_for_requested_commitment(signed_tx):
    signature = signed_tx.signature()
    client, session = rpc_client(
        result({'value': [None]}),
        result({'value': [status('processed')]}),
        result({'value': [status('confirmed')]}),
    )
    assert client.confirm_transaction(signature, Commitment.CONFIRMED) == signature
    assert session.post.call_count == 3
    assert sent(session)['params'] == [[str(signature)]]


def test_finalized_satisfies_confirmed(signed_tx):
    client, _ = rpc_client(result({'value': [status('finalized')]}))
    client.confirm_transaction(signed_tx.signature(), Commitment.CONFIRMED)


def test_transaction_error_is_surfaced(signed_tx):
    err = {'InstructionError': [0, {'Custom': 1}]}
    client, _ = rpc_client(result({'value': [status('confirmed', err=err)]}))
    with pytest.raises(RpcError) as exc:
        client.confirm_transaction(signed_tx.signature(), Commitment.CONFIRMED)
    assert exc.value.data == err
    assert '"Custom": 1' in str(exc.value)


def test_confirmation_timeout(signed_tx):
    client, _ = rpc_client(result({'value': [None]}), confirm_timeout=0)
    with pytest.raises(RpcError, match="unable to confirm"):
        client.confirm_transaction(signed_tx.signature(), Commitment.CONFIRMED)


def test_submit_never_resends(signed_tx):
    client, session = rpc_client(
        result(str(signed_tx.signature())),
        *[result({'value': [None]}) for _ in range(3)],
        confirm_timeout=0,
    )
    with pytest.raises(RpcError):
        client.submit_and_confirm(signed_tx, Commitment.CONFIRMED, DEFAULT_SEND_CONFIG)
    methods = [call.kwargs['json']['method'] for call in session.post.call_args_list]
    assert methods.count('sendTransaction') == 1


def test_submit_and_confirm(signed_tx):
    client, session = rpc_client(
        result(str(signed_tx.signature())),
        result({'value': [status('confirmed')]}),
    )
    assert client.submit_and_confirm(signed_tx, Commitment.CONFIRMED, DEFAULT_SEND_CONFIG) == signed_tx.signature()
    assert [sent(session, i)['method'] for i in range(2)] == ['sendTransaction', 'getSignatureStatuses']


def test_commitment_ordering():
    assert Commitment.CONFIRMED.satisfied_by('confirmed')
    assert Commitment.CONFIRMED.satisfied_by('finalized')
    assert not Commitment.CONFIRMED.satisfied_by('processed')
    assert not Commitment.CONFIRMED.satisfied_by(None)
