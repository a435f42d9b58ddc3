from pytoniq_core import Cell, StateInit, begin_cell

from conftest import SUBWALLET_ID, make_wallet
from fastapi_tonproof.auth import wallets_data
from fastapi_tonproof.auth.wallets_data import try_parse_public_key

# code cell of the standard wallet v4R2 contract
WALLET_V4R2_CODE_HEX = (
    "b5ee9c72410214010002d4000114ff00f4a413f4bcf2c80b010201200203020148040504"
    "f8f28308d71820d31fd31fd31f02f823bbf264ed44d0d31fd31fd3fff404d15143baf2a1"
    "5151baf2a205f901541064f910f2a3f80024a4c8cb1f5240cb1f5230cbff5210f400c9ed"
    "54f80f01d30721c0009f6c519320d74a96d307d402fb00e830e021c001e30021c002e300"
    "01c0039130e30d03a4c8cb1f12cb1fcbff1011121302e6d001d0d3032171b0925f04e022"
    "d749c120925f04e002d31f218210706c7567bd22821064737472bdb0925f05e003fa4030"
    "20fa4401c8ca07cbffc9d0ed44d0810140d721f404305c810108f40a6fa131b3925f07e0"
    "05d33fc8258210706c7567ba923830e30d03821064737472ba925f06e30d060702012008"
    "09007801fa00f40430f8276f2230500aa121bef2e0508210706c7567831eb17080185004"
    "cb0526cf1658fa0219f400cb6917cb1f5260cb3f20c98040fb0006008a5004810108f459"
    "30ed44d0810140d720c801cf16f400c9ed540172b08e23821064737472831eb170801850"
    "05cb055003cf1623fa0213cb6acb1fcb3fc98040fb00925f03e20201200a0b0059bd242b"
    "6f6a2684080a06b90fa0218470d4080847a4937d29910ce6903e9ff9837812801b781014"
    "8987159f31840201580c0d0011b8c97ed44d0d70b1f8003db29dfb513420405035c87d01"
    "0c00b23281f2fff274006040423d029be84c600201200e0f0019adce76a26840206b90eb"
    "85ffc00019af1df6a26840106b90eb858fc0006ed207fa00d4d422f90005c8ca0715cbff"
    "c9d077748018c8cb05cb0222cf165005fa0214cb6b12ccccc973fb00c84014810108f451"
    "f2a7020070810108d718fa00d33fc8542047810108f451f2a782106e6f746570748018c8"
    "cb05cb025006cf165004fa0214cb6a12cb1fcb3fc973fb0002006c810108d718fa00d33f"
    "305224810108f459f2a782106473747270748018c8cb05cb025005cf165003fa0213cb6a"
    "cb1f12cb3fc973fb00000af400c9ed54696225e5"
)


def test_real_v4r2_wallet():
    wallet = make_wallet()
    code = Cell.one_from_boc(bytes.fromhex(WALLET_V4R2_CODE_HEX))
    data = (
        begin_cell()
        .store_uint(0, 32)
        .store_uint(SUBWALLET_ID, 32)
        .store_bytes(wallet.public_key)
        .store_bit(0)  # пустой словарь плагинов
        .end_cell()
    )

    assert code.hash.hex() in wallets_data.WALLET_CODE_HASHES
    assert try_parse_public_key(StateInit(code=code, data=data)) == wallet.public_key


def test_unknown_code_gives_none(wallet):
    assert try_parse_public_key(wallet.state_init) is None


def test_v4_layout(wallet, monkeypatch):
    monkeypatch.setitem(
        wallets_data.WALLET_CODE_HASHES,
        wallet.code.hash.hex(),
        wallets_data._load_v3_v4_public_key,
    )
    assert try_parse_public_key(wallet.state_init) == wallet.public_key


def test_v5_layout(monkeypatch):
    wallet = make_wallet()
    code = begin_cell().store_uint(0x5555, 32).end_cell()
    data = (
        begin_cell()
        .store_bit(1)
        .store_uint(0, 32)
        .store_uint(2147483409, 32)
        .store_bytes(wallet.public_key)
        .end_cell()
    )
    monkeypatch.setitem(
        wallets_data.WALLET_CODE_HASHES,
        code.hash.hex(),
        wallets_data._load_v5_public_key,
    )
    assert try_parse_public_key(StateInit(code=code, data=data)) == wallet.public_key


def test_short_data_gives_none(monkeypatch):
    code = begin_cell().store_uint(0x7777, 32).end_cell()
    data = begin_cell().store_uint(1, 32).end_cell()
    monkeypatch.setitem(
        wallets_data.WALLET_CODE_HASHES,
        code.hash.hex(),
        wallets_data._load_v3_v4_public_key,
    )
    assert try_parse_public_key(StateInit(code=code, data=data)) is None


def test_missing_data_gives_none():
    code = begin_cell().store_uint(0x7777, 32).end_cell()
    assert try_parse_public_key(StateInit(code=code)) is None
