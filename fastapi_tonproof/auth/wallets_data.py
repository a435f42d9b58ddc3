# Разбор data-ячейки стандартных кошельков: публичный ключ можно взять прямо
# из stateInit, не обращаясь к ноде.

from typing import Callable

from pytoniq_core import Slice, StateInit


def _load_v3_v4_public_key(data: Slice) -> bytes:
    # seqno:uint32 subwallet_id:uint32 public_key:bits256
    data.skip_bits(32 + 32)
    return data.load_bytes(32)


def _load_v5_public_key(data: Slice) -> bytes:
    # is_signature_allowed:bool seqno:uint32 wallet_id:uint32 public_key:bits256
    data.skip_bits(1 + 32 + 32)
    return data.load_bytes(32)


# hex-хэш code-ячейки -> парсер data-ячейки
WALLET_CODE_HASHES: dict[str, Callable[[Slice], bytes]] = {
    # wallet v3R1
    "b61041a58a7980b946e8fb9e198e3c904d24799ffa36574ea4251c41a566f581": _load_v3_v4_public_key,
    # wallet v3R2
    "84dafa449f98a6987789ba232358072bc0f76dc4524002a5d0918b9a75d2d599": _load_v3_v4_public_key,
    # wallet v4R2
    "feb5ff6820e2ff0d9483e7e0d62c817d846789fb4ae580c878866d959dabd5c0": _load_v3_v4_public_key,
    # wallet v5R1
    "20834b7b72b112147e1b2fb457b84e74d1a30f04f737d4f62a668e9552d2b72f": _load_v5_public_key,
}


def try_parse_public_key(state_init: StateInit) -> bytes | None:
    """
    Достаёт публичный ключ из data-ячейки известного кошелька.

    :param state_init: Разобранный stateInit контракта.
    :return: 32 байта ключа или None, если код кошелька неизвестен.
    """
    if state_init.code is None or state_init.data is None:
        return None
    loader = WALLET_CODE_HASHES.get(state_init.code.hash.hex())
    if loader is None:
        return None
    try:
        return loader(state_init.data.begin_parse())
    except Exception:
        # data не соответствует ожидаемой раскладке, ключ спросим у ноды
        return None
