"""Unit tests for OperationDispatcher."""

import pytest
from solders.keypair import Keypair

from fixtures.fake_ledger import SYSTEM_PROGRAM, FakeRpcClient, connected_manager
from solana_gateway.errors import ErrorKind, GatewayError
from solana_gateway.models.keys import encode_secret
from solana_gateway.models.operation import OperationRequest
from solana_gateway.models.params import AddressParams, NoParams
from solana_gateway.services.dispatcher import OperationDispatcher
from solana_gateway.services.ledger import LedgerService
from solana_gateway.services.metadata_client import MetadataClient
from solana_gateway.services.metrics import GatewayMetrics
from solana_gateway.services.operation_registry import OperationRegistry
from solana_gateway.services.operations import build_registry
from solana_gateway.services.token_flow import TokenFlow
from solana_gateway.services.transfer_flow import TransferFlow


class Handlers:
    """Records handler invocations."""

    def __init__(self):
        self.calls = []

    async def balance(self, params):
        self.calls.append(params)
        return {"address": params.address, "balanceInSol": 1.0}

    async def unavailable(self, params):
        raise GatewayError(ErrorKind.UNAVAILABLE, "Not connected to Solana devnet")

    async def crash(self, params):
        raise KeyError("surprise")


@pytest.fixture
def handlers():
    return Handlers()


@pytest.fixture
def metrics():
    return GatewayMetrics()


@pytest.fixture
def dispatcher(handlers, metrics):
    registry = OperationRegistry()
    registry.register("getBalance", AddressParams, handlers.balance, aliases=("balance",))
    registry.register("down", NoParams, handlers.unavailable)
    registry.register("crash", NoParams, handlers.crash)
    return OperationDispatcher(registry, metrics)


def sample(metrics, operation, outcome):
    return metrics.registry.get_sample_value(
        "gateway_operations_total", {"operation": operation, "outcome": outcome}
    )


class TestDispatcherInit:
    def test_none_registry_raises(self):
        with pytest.raises(ValueError, match="registry is required"):
            OperationDispatcher(None)


class TestExecute:
    """Tests for execute method."""

    @pytest.mark.asyncio
    async def test_success(self, dispatcher, handlers, metrics):
        result = await dispatcher.execute(
            OperationRequest(action="getBalance", parameters={"address": SYSTEM_PROGRAM})
        )

        assert result.success is True
        assert result.payload == {"address": SYSTEM_PROGRAM, "balanceInSol": 1.0}
        assert len(handlers.calls) == 1
        assert sample(metrics, "getBalance", "success") == 1.0

    @pytest.mark.asyncio
    async def test_invalid_params_never_reach_handler(self, dispatcher, handlers):
        """Validation failures are reported before the handler runs."""
        result = await dispatcher.execute(
            OperationRequest(action="getBalance", parameters={"address": "xyz"})
        )

        assert result.success is False
        assert result.error.category is ErrorKind.INVALID_PARAMS
        assert result.payload is None
        assert handlers.calls == []

    @pytest.mark.asyncio
    async def test_unknown_operation(self, dispatcher, metrics):
        result = await dispatcher.execute(OperationRequest(action="mint"))

        assert result.error.category is ErrorKind.UNKNOWN_OPERATION
        assert sample(metrics, "unknown", "UnknownOperation") == 1.0

    @pytest.mark.asyncio
    async def test_alias(self, dispatcher, handlers):
        result = await dispatcher.execute(
            OperationRequest(action="balance", parameters={"address": SYSTEM_PROGRAM})
        )
        assert result.success is True

    @pytest.mark.asyncio
    async def test_gateway_error_mapped(self, dispatcher):
        result = await dispatcher.execute(OperationRequest(action="down"))

        assert result.success is False
        assert result.error.category is ErrorKind.UNAVAILABLE
        assert result.error.message == "Not connected to Solana devnet"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_internal(self, dispatcher, metrics):
        """Unexpected exceptions never escape the dispatcher."""
        result = await dispatcher.execute(OperationRequest(action="crash"))

        assert result.success is False
        assert result.error.category is ErrorKind.INTERNAL
        assert sample(metrics, "crash", "Internal") == 1.0


class TestExecuteRaw:
    """Tests for execute_raw method."""

    @pytest.mark.asyncio
    async def test_missing_action(self, dispatcher):
        result = await dispatcher.execute_raw(None, {})

        assert result.error.category is ErrorKind.INVALID_PARAMS
        assert "action" in result.error.message

    @pytest.mark.asyncio
    async def test_non_object_parameters(self, dispatcher):
        result = await dispatcher.execute_raw("getBalance", "address")

        assert result.error.category is ErrorKind.INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_missing_parameters(self, dispatcher):
        """Missing address is an error result, never a partial success."""
        result = await dispatcher.execute_raw("getBalance", None)

        assert result.success is False
        assert result.payload is None
        assert result.error.category is ErrorKind.INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_numeric_request_id_accepted(self, dispatcher):
        result = await dispatcher.execute_raw(
            "getBalance", {"address": SYSTEM_PROGRAM}, request_id=7
        )
        assert result.success is True


BAD_ADDRESS = "not-an-address"
SIGNER_SECRET = encode_secret(Keypair())


class TestMalformedAddresses:
    """Every operation that takes an address rejects a malformed one locally."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "action,parameters",
        [
            ("getBalance", {"address": BAD_ADDRESS}),
            ("getAccountInfo", {"address": BAD_ADDRESS}),
            ("getTransactions", {"address": BAD_ADDRESS, "limit": 5}),
            ("getTokenAccounts", {"address": BAD_ADDRESS}),
            ("getTokenBalance", {"walletAddress": BAD_ADDRESS, "mintAddress": SYSTEM_PROGRAM}),
            ("getTokenBalance", {"walletAddress": SYSTEM_PROGRAM, "mintAddress": BAD_ADDRESS}),
            (
                "transferFunds",
                {
                    "fromAddress": BAD_ADDRESS,
                    "toAddress": SYSTEM_PROGRAM,
                    "amount": 1,
                    "fromPrivateKey": SIGNER_SECRET,
                },
            ),
            (
                "transferFunds",
                {
                    "fromAddress": SYSTEM_PROGRAM,
                    "toAddress": BAD_ADDRESS,
                    "amount": 1,
                    "fromPrivateKey": SIGNER_SECRET,
                },
            ),
        ],
    )
    async def test_rejected_without_remote_call(self, action, parameters):
        rpc = FakeRpcClient()
        manager = await connected_manager(rpc)
        registry = build_registry(
            LedgerService(manager),
            TransferFlow(manager),
            TokenFlow(manager, MetadataClient("https://meta.test/ipfs", "https://meta.test/trade")),
        )
        dispatcher = OperationDispatcher(registry)
        calls_before = list(rpc.calls)

        result = await dispatcher.execute_raw(action, parameters)

        assert result.success is False
        assert result.error.category is ErrorKind.INVALID_PARAMS
        assert rpc.calls == calls_before
