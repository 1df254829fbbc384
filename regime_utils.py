from __future__ import annotations

from typing import Any, Dict, List, Sequence

from input_utils import InvalidInputError

REGIME_CODE_REAL = "lucro_real"
REGIME_CODE_PRESUMIDO = "lucro_presumido"
REGIME_CODE_SIMPLES = "simples_nacional"

REGIME_DISPLAY_REAL = "Lucro Real"
REGIME_DISPLAY_PRESUMIDO = "Lucro Presumido"
REGIME_DISPLAY_SIMPLES = "Simples Nacional"

REGIMES_VALIDOS = (REGIME_CODE_REAL, REGIME_CODE_PRESUMIDO, REGIME_CODE_SIMPLES)

_DISPLAY_BY_CODE: Dict[str, str] = {
    REGIME_CODE_REAL: REGIME_DISPLAY_REAL,
    REGIME_CODE_PRESUMIDO: REGIME_DISPLAY_PRESUMIDO,
    REGIME_CODE_SIMPLES: REGIME_DISPLAY_SIMPLES,
}

# Rotulos legados/abreviados aceitos na borda (UI, arquivos importados).
_ALIASES: Dict[str, str] = {
    "real": REGIME_CODE_REAL,
    "lucro real": REGIME_CODE_REAL,
    "lr": REGIME_CODE_REAL,
    "presumido": REGIME_CODE_PRESUMIDO,
    "lucro presumido": REGIME_CODE_PRESUMIDO,
    "lp": REGIME_CODE_PRESUMIDO,
    "simples": REGIME_CODE_SIMPLES,
    "simples nacional": REGIME_CODE_SIMPLES,
    "sn": REGIME_CODE_SIMPLES,
}


def _normalize_text_lower(value: Any) -> str:
    return str(value or "").strip().lower()


def canonicalize_regime(regime: Any) -> str:
    """
    Canonicaliza o identificador de regime para lucro_real|lucro_presumido|simples_nacional.
    Identificador desconhecido e rejeitado (sem fallback silencioso).
    """
    raw = _normalize_text_lower(regime).replace("-", "_")
    if raw in REGIMES_VALIDOS:
        return raw
    alias = _ALIASES.get(raw.replace("_", " "))
    if alias:
        return alias
    raise InvalidInputError("regime", regime, f"regime desconhecido; use {'|'.join(REGIMES_VALIDOS)}")


def regime_display(regime: str) -> str:
    code = canonicalize_regime(regime)
    return _DISPLAY_BY_CODE[code]


def regime_calculado(regime: str) -> bool:
    """Apenas o Lucro Real e calculado pelo engine; os demais sao informados manualmente."""
    return canonicalize_regime(regime) == REGIME_CODE_REAL


def canonicalize_regimes(regimes: Sequence[Any]) -> List[str]:
    """Preserva a ordem de selecao e rejeita repeticao."""
    codes: List[str] = []
    for regime in regimes:
        code = canonicalize_regime(regime)
        if code in codes:
            raise InvalidInputError("regimes", list(regimes), f"regime repetido na selecao: {code}")
        codes.append(code)
    return codes
