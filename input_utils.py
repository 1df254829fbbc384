from __future__ import annotations

import math
import re
from typing import Any, Dict, Iterable, List, Tuple

PERIODICIDADES_VALIDAS = ("mensal", "trimestral", "semestral", "anual")

_RE_MENSAL = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
_RE_TRIMESTRAL = re.compile(r"^\d{4}-T[1-4]$")
_RE_SEMESTRAL = re.compile(r"^\d{4}-S[1-2]$")
_RE_ANUAL = re.compile(r"^\d{4}$")


class InvalidInputError(ValueError):
    """Campo numerico/enum invalido detectado antes de qualquer calculo."""

    def __init__(self, campo: str, valor: Any, detalhe: str, impacto: str = "Calculo interrompido") -> None:
        self.campo = campo
        self.valor = valor
        self.detalhe = detalhe
        super().__init__(f"campo={campo} | valor={valor!r} | impacto={impacto} | detalhe={detalhe}")


def exigir_valor(campo: str, valor: Any) -> float:
    """Valor monetario obrigatorio: numerico, finito e >= 0."""
    if isinstance(valor, bool) or not isinstance(valor, (int, float)):
        raise InvalidInputError(campo, valor, "valor nao numerico")
    numero = float(valor)
    if not math.isfinite(numero):
        raise InvalidInputError(campo, valor, "valor nao finito")
    if numero < 0:
        raise InvalidInputError(campo, valor, "valor negativo")
    return numero


def exigir_percentual(campo: str, valor: Any) -> float:
    """Percentual na escala 0-100."""
    numero = exigir_valor(campo, valor)
    if numero > 100.0:
        raise InvalidInputError(campo, valor, "percentual acima de 100")
    return numero


def exigir_finito(campo: str, valor: float) -> float:
    if not math.isfinite(valor):
        raise InvalidInputError(campo, valor, "resultado nao finito", impacto="Resultado descartado")
    return valor


def exigir_mes(campo: str, valor: Any) -> int:
    if isinstance(valor, bool) or not isinstance(valor, int):
        raise InvalidInputError(campo, valor, "mes deve ser inteiro")
    if not 1 <= valor <= 12:
        raise InvalidInputError(campo, valor, "mes fora do intervalo 1-12")
    return valor


def exigir_ano(campo: str, valor: Any) -> int:
    if isinstance(valor, bool) or not isinstance(valor, int):
        raise InvalidInputError(campo, valor, "ano deve ser inteiro")
    if not 1000 <= valor <= 9999:
        raise InvalidInputError(campo, valor, "ano deve ter 4 digitos")
    return valor


def exigir_opcao(campo: str, valor: Any, opcoes: Iterable[str]) -> str:
    opcoes = tuple(opcoes)
    texto = str(valor or "").strip().lower()
    if texto not in opcoes:
        raise InvalidInputError(campo, valor, f"valor fora de {'|'.join(opcoes)}")
    return texto


def normalizar_meses(meses: Iterable[Any]) -> List[int]:
    """Meses selecionados: inteiros 1-12, sem repeticao, em ordem crescente."""
    vistos = {exigir_mes("meses", m) for m in meses}
    return sorted(vistos)


def campos_ausentes(payload: Dict[str, Any], obrigatorios: Iterable[str]) -> List[str]:
    return [campo for campo in obrigatorios if campo not in payload or payload[campo] is None]


def validar_periodicidade(valor: str) -> str:
    """Normaliza periodicidade para mensal/trimestral/semestral/anual com default anual."""
    v = (valor or "").strip().lower()
    if v in PERIODICIDADES_VALIDAS:
        return v
    return "anual"


def validar_competencia(periodicidade: str, competencia: str) -> Tuple[bool, str]:
    """
    Valida competência conforme periodicidade.
    Retorna (True, valor_normalizado) ou (False, mensagem_erro).
    """
    p = validar_periodicidade(periodicidade)
    c = (competencia or "").strip().upper()

    if p == "mensal":
        if _RE_MENSAL.match(c):
            return True, c
        return False, "Competência inválida para periodicidade mensal. Use formato YYYY-MM."

    if p == "trimestral":
        if _RE_TRIMESTRAL.match(c):
            return True, c
        return False, "Competência inválida para periodicidade trimestral. Use formato YYYY-T1..T4."

    if p == "semestral":
        if _RE_SEMESTRAL.match(c):
            return True, c
        return False, "Competência inválida para periodicidade semestral. Use formato YYYY-S1..S2."

    if _RE_ANUAL.match(c):
        return True, c
    return False, "Competência inválida para periodicidade anual. Use formato YYYY."
