"""
RECYCLE token payouts: ERC-20 transfers from the treasury wallet via web3.py
"""

from fastapi import HTTPException
from web3 import Web3

from ..config import settings
from ..core.logging import get_logger

logger = get_logger(__name__)

RPC_TIMEOUT_SECONDS = 30

# Minimal ERC-20 ABI: only what a payout needs
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_to", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
]


class RewardTransferError(Exception):
    """The token transfer could not be submitted"""


def normalize_wallet_address(address: str) -> str:
    """
    Validate a wallet address and return its checksummed form

    Raises:
        HTTPException: 400 for anything that is not a 20-byte hex address
    """
    if not address or not Web3.is_address(address):
        raise HTTPException(status_code=400, detail="Invalid wallet address")
    return Web3.to_checksum_address(address)


def get_web3() -> Web3:
    return Web3(Web3.HTTPProvider(settings.reward_rpc_url, request_kwargs={"timeout": RPC_TIMEOUT_SECONDS}))


def send_reward_tokens(wallet_address: str) -> str:
    """
    Transfer the configured number of whole tokens to a wallet

    Returns:
        The transaction hash as a 0x-prefixed hex string

    Raises:
        RewardTransferError: if the transfer could not be built, signed or sent
    """
    w3 = get_web3()
    try:
        account = w3.eth.account.from_key(settings.reward_treasury_private_key)
        token = w3.eth.contract(
            address=Web3.to_checksum_address(settings.reward_token_address),
            abi=ERC20_ABI,
        )
        decimals = token.functions.decimals().call()
        amount = settings.reward_token_amount * 10 ** decimals

        tx = token.functions.transfer(wallet_address, amount).build_transaction({
            "from": account.address,
            "nonce": w3.eth.get_transaction_count(account.address),
            "chainId": settings.reward_chain_id,
        })
        signed = account.sign_transaction(tx)
        tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
    except Exception as e:
        logger.error(f"Token transfer to {wallet_address} failed: {e}")
        raise RewardTransferError(str(e)) from e

    tx_hash_hex = Web3.to_hex(tx_hash)
    logger.info(f"Sent {settings.reward_token_amount} RECYCLE to {wallet_address}: {tx_hash_hex}")
    return tx_hash_hex
