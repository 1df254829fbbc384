import json
import os
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from dto import ManualMonthlyEntry, Scenario
from input_utils import InvalidInputError
from logging_config import get_logger
from regime_comparator import FonteRegime
from regime_utils import canonicalize_regime, canonicalize_regimes, regime_calculado

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
ARQUIVO_CENARIOS = "cenarios.jsonl"
ARQUIVO_LANCAMENTOS = "lancamentos.jsonl"

logger = get_logger("history_store")


class DuplicateEntryError(ValueError):
    """Ja existe lancamento para (empresa, mes, ano, regime)."""

    def __init__(self, chave: tuple, existente_id: str) -> None:
        self.chave = chave
        self.existente_id = existente_id
        empresa_id, mes, ano, regime = chave
        super().__init__(
            f"empresa_id={empresa_id} | mes={mes} | ano={ano} | regime={regime} | "
            f"impacto=Lancamento nao salvo | detalhe=chave ja usada pelo lancamento {existente_id}"
        )


def _store_path(pasta: str, arquivo: str) -> str:
    if os.path.isabs(pasta):
        return os.path.join(pasta, arquivo)
    return os.path.join(BASE_DIR, pasta, arquivo)


def _load_records(caminho: str, parser: Callable[[Dict[str, Any]], Any]) -> Tuple[List[Any], List[str]]:
    """
    Le o JSONL separando registros validos das linhas corrompidas ou invalidas (com aviso).
    As linhas ilegiveis voltam intactas para que a regravacao nao as descarte.
    """
    if not os.path.exists(caminho):
        return [], []

    with open(caminho, "r", encoding="utf-8") as f:
        linhas = [l.strip() for l in f.readlines() if l.strip()]

    registros: List[Any] = []
    ilegiveis: List[str] = []
    for numero, linha in enumerate(linhas, start=1):
        try:
            registros.append(parser(json.loads(linha)))
        except json.JSONDecodeError:
            logger.warning("%s:%d ignorada (JSON invalido)", os.path.basename(caminho), numero)
            ilegiveis.append(linha)
        except (InvalidInputError, KeyError, TypeError, ValueError) as exc:
            logger.warning("%s:%d ignorada (%s)", os.path.basename(caminho), numero, exc)
            ilegiveis.append(linha)
    return registros, ilegiveis


def _read_records(caminho: str, parser: Callable[[Dict[str, Any]], Any]) -> List[Any]:
    return _load_records(caminho, parser)[0]


def _write_records(caminho: str, registros: Sequence[Any], ilegiveis: Sequence[str] = ()) -> str:
    os.makedirs(os.path.dirname(caminho), exist_ok=True)
    temporario = caminho + ".tmp"
    with open(temporario, "w", encoding="utf-8") as f:
        for linha in ilegiveis:
            f.write(linha + "\n")
        for registro in registros:
            f.write(json.dumps(registro.to_dict(), ensure_ascii=False) + "\n")
    os.replace(temporario, caminho)
    if ilegiveis:
        logger.warning("%s: %d linha(s) ilegivel(is) mantida(s) sem alteracao", os.path.basename(caminho), len(ilegiveis))
    return caminho


# --- Cenarios -----------------------------------------------------------------


def listar_cenarios(
    empresa_id: Optional[str] = None,
    ano: Optional[int] = None,
    pasta: str = "data",
    arquivo: str = ARQUIVO_CENARIOS,
) -> List[Scenario]:
    cenarios = _read_records(_store_path(pasta, arquivo), Scenario.from_dict)
    if empresa_id is not None:
        cenarios = [c for c in cenarios if c.empresa_id == empresa_id]
    if ano is not None:
        cenarios = [c for c in cenarios if c.periodo.ano == ano]
    return cenarios


def carregar_cenario(cenario_id: str, pasta: str = "data", arquivo: str = ARQUIVO_CENARIOS) -> Optional[Scenario]:
    return next((c for c in listar_cenarios(pasta=pasta, arquivo=arquivo) if c.id == cenario_id), None)


def salvar_cenario(cenario: Scenario, pasta: str = "data", arquivo: str = ARQUIVO_CENARIOS) -> str:
    """Insere ou substitui pelo id; o resultado gravado e o que o cenario ja carrega."""
    caminho = _store_path(pasta, arquivo)
    existentes, ilegiveis = _load_records(caminho, Scenario.from_dict)
    cenarios = [c for c in existentes if c.id != cenario.id]
    cenarios.append(cenario)
    logger.debug("cenario %s salvo em %s", cenario.id, caminho)
    return _write_records(caminho, cenarios, ilegiveis)


def remover_cenario(cenario_id: str, pasta: str = "data", arquivo: str = ARQUIVO_CENARIOS) -> bool:
    caminho = _store_path(pasta, arquivo)
    cenarios, ilegiveis = _load_records(caminho, Scenario.from_dict)
    restantes = [c for c in cenarios if c.id != cenario_id]
    if len(restantes) == len(cenarios):
        return False
    _write_records(caminho, restantes, ilegiveis)
    return True


# --- Lancamentos manuais ------------------------------------------------------


def listar_lancamentos(
    empresa_id: Optional[str] = None,
    ano: Optional[int] = None,
    regime: Optional[str] = None,
    pasta: str = "data",
    arquivo: str = ARQUIVO_LANCAMENTOS,
) -> List[ManualMonthlyEntry]:
    lancamentos = _read_records(_store_path(pasta, arquivo), ManualMonthlyEntry.from_dict)
    if empresa_id is not None:
        lancamentos = [l for l in lancamentos if l.empresa_id == empresa_id]
    if ano is not None:
        lancamentos = [l for l in lancamentos if l.ano == ano]
    if regime is not None:
        codigo = canonicalize_regime(regime)
        lancamentos = [l for l in lancamentos if l.regime == codigo]
    return sorted(lancamentos, key=lambda l: (l.empresa_id, l.ano, l.mes, l.regime))


def salvar_lancamento(
    entry: ManualMonthlyEntry,
    substituir: bool = False,
    pasta: str = "data",
    arquivo: str = ARQUIVO_LANCAMENTOS,
) -> str:
    """
    Grava o lancamento garantindo no maximo um por (empresa, mes, ano, regime).
    Com substituir=True o lancamento existente na mesma chave e trocado pelo novo.
    """
    entry.validar()
    caminho = _store_path(pasta, arquivo)
    existentes, ilegiveis = _load_records(caminho, ManualMonthlyEntry.from_dict)

    chave = entry.chave_natural
    conflito = next((l for l in existentes if l.chave_natural == chave and l.id != entry.id), None)
    if conflito is not None and not substituir:
        raise DuplicateEntryError(chave, conflito.id)

    restantes = [l for l in existentes if l.id != entry.id and l.chave_natural != chave]
    restantes.append(entry)
    logger.debug("lancamento %s salvo (%s)", entry.id, chave)
    return _write_records(caminho, restantes, ilegiveis)


def remover_lancamento(lancamento_id: str, pasta: str = "data", arquivo: str = ARQUIVO_LANCAMENTOS) -> bool:
    caminho = _store_path(pasta, arquivo)
    existentes, ilegiveis = _load_records(caminho, ManualMonthlyEntry.from_dict)
    restantes = [l for l in existentes if l.id != lancamento_id]
    if len(restantes) == len(existentes):
        return False
    _write_records(caminho, restantes, ilegiveis)
    return True


def fontes_para_comparacao(
    empresa_id: str,
    ano: int,
    regimes: Sequence[str],
    pasta: str = "data",
) -> List[FonteRegime]:
    """Monta as fontes do comparativo a partir do que esta gravado."""
    cenarios = tuple(listar_cenarios(empresa_id=empresa_id, ano=ano, pasta=pasta))
    fontes: List[FonteRegime] = []
    for regime in canonicalize_regimes(regimes):
        lancamentos = tuple(listar_lancamentos(empresa_id=empresa_id, ano=ano, regime=regime, pasta=pasta))
        fontes.append(
            FonteRegime(
                regime=regime,
                cenarios=cenarios if regime_calculado(regime) else (),
                lancamentos=lancamentos,
            )
        )
    return fontes
