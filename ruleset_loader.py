import json
import os
import sys
from copy import deepcopy
from typing import Any, Dict, Tuple

from logging_config import get_logger

DEFAULT_RULESET_ID = "LUCRO_REAL_2026_V1"

_CACHE: Dict[Tuple[str, str], Dict[str, Any]] = {}
logger = get_logger("ruleset_loader")


def _runtime_base_dir() -> str:
    """
    Resolve diretorio base para modo normal e executavel PyInstaller.
    """
    if getattr(sys, "frozen", False):
        meipass = getattr(sys, "_MEIPASS", None)
        if isinstance(meipass, str) and meipass.strip():
            return meipass
        return os.path.dirname(sys.executable)
    return os.path.dirname(os.path.abspath(__file__))


def _rulesets_dir() -> str:
    return os.path.join(_runtime_base_dir(), "rulesets")


def _ruleset_dir(ruleset_id: str) -> str:
    return os.path.join(_rulesets_dir(), ruleset_id)


def _load_json(ruleset_id: str, filename: str) -> Dict[str, Any]:
    key = (ruleset_id, filename)
    if key in _CACHE:
        return deepcopy(_CACHE[key])

    ruleset_path = _ruleset_dir(ruleset_id)
    if not os.path.isdir(ruleset_path):
        raise FileNotFoundError(f"Ruleset '{ruleset_id}' não encontrado em {ruleset_path}.")

    file_path = os.path.join(ruleset_path, filename)
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"Arquivo '{filename}' não encontrado para ruleset '{ruleset_id}'.")

    with open(file_path, "r", encoding="utf-8-sig") as f:
        payload = json.load(f)

    if not isinstance(payload, dict):
        raise ValueError(f"Arquivo '{filename}' do ruleset '{ruleset_id}' deve conter objeto JSON.")

    logger.debug("ruleset carregado: %s/%s", ruleset_id, filename)
    _CACHE[key] = payload
    return deepcopy(payload)


def clear_cache() -> None:
    _CACHE.clear()


def load_ruleset(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, "metadata.json")


def get_real_params(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, "real_params.json")


def ruleset_error(ruleset_id: str, arquivo: str, chave: str, impacto: str, detalhe: str = "") -> ValueError:
    msg = f"ruleset_id={ruleset_id} | arquivo={arquivo} | chave={chave} | regime=Lucro Real | impacto={impacto}"
    if detalhe:
        msg += f" | detalhe={detalhe}"
    return ValueError(msg)


def required_float(payload: Dict[str, Any], key: str, *, ruleset_id: str, arquivo: str, impacto: str) -> float:
    if key not in payload:
        raise ruleset_error(ruleset_id, arquivo, key, impacto, "chave ausente")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ruleset_error(ruleset_id, arquivo, key, impacto, "valor nao numerico")
    return float(value)
