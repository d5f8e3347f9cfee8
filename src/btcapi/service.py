"""
Bitcoin transaction service.

Wires the collaborators to the engine and exposes the five request-level
operations. Every operation returns an ApiResponse envelope; errors are
reported as data, never raised to the caller.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger

from btcapi.backends import (
    BlockchainInfoBackend,
    Broadcaster,
    EsploraBackend,
    FeeOracle,
    RawTransactionProvider,
    UtxoProvider,
)
from btcapi.broadcast import TXID_PATTERN, BroadcastResultValidator
from btcapi.config import ChainContext, Settings
from btcapi.constants import STANDARD_DUST_LIMIT
from btcapi.errors import (
    BtcApiError,
    ConfigLoadError,
    InvalidOutPoint,
    InvalidTransaction,
    TransactionSigningError,
)
from btcapi.models import (
    ApiResponse,
    BroadcastData,
    BroadcastTransactionParams,
    CreateTransactionData,
    CreateTransactionParams,
    FundedInput,
    NetworkFee,
    TransactionDetail,
    WalletBalance,
)
from btcapi.status import TransactionStatusClassifier
from btcapi.wallet.address import address_to_scriptpubkey
from btcapi.wallet.builder import TransactionBuilder
from btcapi.wallet.coin_selection import CoinSelector
from btcapi.wallet.keys import KeyStore, StaticKeyStore
from btcapi.wallet.reservation import UtxoReservations
from btcapi.wallet.signing import TransactionSigner
from btcapi.wallet.transaction import Transaction, TransactionParseError

T = TypeVar("T")


class BitcoinService:
    def __init__(
        self,
        context: ChainContext,
        utxo_provider: UtxoProvider,
        raw_tx_provider: RawTransactionProvider,
        broadcaster: Broadcaster,
        fee_oracle: FeeOracle,
        key_store: KeyStore | None = None,
        reservations: UtxoReservations | None = None,
    ) -> None:
        if context.signing_enabled and key_store is None:
            raise ConfigLoadError("signing is enabled but no signing keys are configured")

        self.context = context
        self.utxo_provider = utxo_provider
        self.raw_tx_provider = raw_tx_provider
        self.broadcaster = broadcaster
        self.fee_oracle = fee_oracle
        self.reservations = reservations if reservations is not None else UtxoReservations()

        self.selector = CoinSelector(utxo_provider, self.reservations)
        self.builder = TransactionBuilder(context.network)
        self.signer = TransactionSigner(key_store, context.network) if key_store else None
        self.classifier = TransactionStatusClassifier()
        self.validator = BroadcastResultValidator(context.explorer_tx_url)

    @classmethod
    def from_settings(cls, settings: Settings) -> BitcoinService:
        context = settings.chain_context()
        esplora = EsploraBackend(context.esplora_url, timeout=settings.request_timeout)
        blockchain_info = BlockchainInfoBackend(context.rawtx_url, timeout=settings.request_timeout)

        key_store = None
        wifs = settings.get_signing_keys()
        if wifs:
            try:
                key_store = StaticKeyStore.from_wifs(wifs, context.network)
            except ValueError as e:
                raise ConfigLoadError(f"invalid signing key: {e}") from e

        return cls(
            context=context,
            utxo_provider=esplora,
            raw_tx_provider=blockchain_info,
            broadcaster=esplora,
            fee_oracle=esplora,
            key_store=key_store,
            reservations=UtxoReservations(ttl=settings.reservation_ttl),
        )

    async def _envelope(
        self, operation: str, model: type[T], call: Callable[[], Awaitable[T]]
    ) -> ApiResponse[T]:
        envelope = ApiResponse[model]  # type: ignore[valid-type]
        try:
            data = await call()
        except BtcApiError as e:
            logger.warning(f"{operation} failed: {e}")
            return envelope.failure(str(e))
        except Exception as e:
            logger.exception(f"{operation} failed unexpectedly: {e}")
            return envelope.failure(f"InternalError: {e}")
        return envelope.success(data)

    # ------------------------------------------------------------------
    # Network fee
    # ------------------------------------------------------------------

    async def get_network_fee(self) -> ApiResponse[NetworkFee]:
        return await self._envelope("get_network_fee", NetworkFee, self.fee_oracle.get_network_fee)

    # ------------------------------------------------------------------
    # Transaction status
    # ------------------------------------------------------------------

    async def _validate_transaction_hash(self, transaction_hash: str) -> TransactionDetail:
        if not TXID_PATTERN.fullmatch(transaction_hash):
            raise InvalidOutPoint(f"not a transaction hash: {transaction_hash}")

        record = await self.raw_tx_provider.get_raw_transaction(transaction_hash)
        status, detail = self.classifier.classify(record)
        logger.debug(f"Transaction {transaction_hash} is {status.value}")
        return detail

    async def validate_transaction_hash(
        self, transaction_hash: str
    ) -> ApiResponse[TransactionDetail]:
        return await self._envelope(
            "validate_transaction_hash",
            TransactionDetail,
            lambda: self._validate_transaction_hash(transaction_hash),
        )

    # ------------------------------------------------------------------
    # Create / sign / broadcast
    # ------------------------------------------------------------------

    async def _broadcast_hex(self, tx_hex: str) -> BroadcastData:
        response_text = await self.broadcaster.broadcast_transaction(tx_hex)
        txid = self.validator.validate(response_text)
        explorer_url = self.validator.explorer_url(txid)
        logger.info(f"Broadcast transaction {txid}: {explorer_url}")
        return BroadcastData(txid=txid, explorer_url=explorer_url)

    async def _create_transaction(self, params: CreateTransactionParams) -> CreateTransactionData:
        params.check_amounts()

        # Reject bad addresses before any UTXOs are fetched or reserved
        address_to_scriptpubkey(params.sender_address, self.context.network)
        address_to_scriptpubkey(params.receiver_address, self.context.network)

        plan = await self.selector.select(params.sender_address, params.amount, params.fee)
        if 0 < plan.change_amount < STANDARD_DUST_LIMIT:
            logger.warning(
                f"Change output of {plan.change_amount} sats is below the dust limit "
                f"({STANDARD_DUST_LIMIT}), broadcasters may reject the transaction"
            )

        try:
            tx = self.builder.build(
                receiver_address=params.receiver_address,
                sender_address=params.sender_address,
                send_amount=params.amount,
                change_amount=plan.change_amount,
                inputs=plan.inputs,
            )

            if self.context.signing_enabled and self.signer is not None:
                tx = self.signer.sign(tx, plan.consumed_outputs)

            broadcast = None
            if params.broadcast:
                if not tx.is_signed:
                    raise TransactionSigningError("cannot broadcast: signing is disabled")
                broadcast = await self._broadcast_hex(tx.to_hex())

        except Exception:
            await self.reservations.release(plan.outpoints)
            raise

        # Broadcast outputs stay claimed until the explorer reports them spent
        if broadcast is None:
            await self.reservations.release(plan.outpoints)

        logger.info(
            f"Created {'signed' if tx.is_signed else 'unsigned'} transaction {tx.txid} "
            f"({len(tx.inputs)} inputs, change {plan.change_amount})"
        )

        return CreateTransactionData(
            transaction_hex=tx.to_hex(),
            txid=tx.txid,
            signed=tx.is_signed,
            inputs=[
                FundedInput(txid=u.transaction_id, vout=u.output_index, value=u.value)
                for u in plan.consumed_outputs
            ],
            send_amount=plan.send_amount,
            fee=plan.fee,
            change_amount=plan.change_amount,
            broadcast=broadcast,
        )

    async def create_transaction(
        self, params: CreateTransactionParams
    ) -> ApiResponse[CreateTransactionData]:
        return await self._envelope(
            "create_transaction", CreateTransactionData, lambda: self._create_transaction(params)
        )

    async def _broadcast_transaction(self, params: BroadcastTransactionParams) -> BroadcastData:
        try:
            tx = Transaction.from_hex(params.signed_transaction)
        except TransactionParseError as e:
            raise InvalidTransaction(str(e)) from e

        if not tx.is_signed:
            raise InvalidTransaction("transaction carries no witness data")

        broadcast = await self._broadcast_hex(params.signed_transaction)
        if broadcast.txid.lower() != tx.txid:
            logger.warning(f"Explorer reported txid {broadcast.txid}, computed {tx.txid}")
        return broadcast

    async def broadcast_transaction(
        self, params: BroadcastTransactionParams
    ) -> ApiResponse[BroadcastData]:
        return await self._envelope(
            "broadcast_transaction", BroadcastData, lambda: self._broadcast_transaction(params)
        )

    # ------------------------------------------------------------------
    # Balance
    # ------------------------------------------------------------------

    async def _get_wallet_balance(self, address: str) -> WalletBalance:
        address_to_scriptpubkey(address, self.context.network)

        utxos = await self.utxo_provider.get_utxos(address)
        confirmed = sum(u.value for u in utxos if u.confirmed)
        unconfirmed = sum(u.value for u in utxos if not u.confirmed)
        logger.debug(f"Balance for {address}: {confirmed} confirmed, {unconfirmed} unconfirmed")

        return WalletBalance(
            address=address,
            confirmed=confirmed,
            unconfirmed=unconfirmed,
            total=confirmed + unconfirmed,
            utxo_count=len(utxos),
        )

    async def get_wallet_balance(self, address: str) -> ApiResponse[WalletBalance]:
        return await self._envelope(
            "get_wallet_balance", WalletBalance, lambda: self._get_wallet_balance(address)
        )

    async def close(self) -> None:
        """Close backend connections"""
        closed: set[int] = set()
        for backend in (self.utxo_provider, self.raw_tx_provider, self.broadcaster, self.fee_oracle):
            close = getattr(backend, "close", None)
            if close is None or id(backend) in closed:
                continue
            closed.add(id(backend))
            await close()
