from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from regime_utils import regime_display

TIPO_SUCCESS = "success"
TIPO_ALERT = "alert"
TIPO_WARNING = "warning"

MODO_PERCENTUAL = "percentual"  # variacao relativa (%) sobre a base
MODO_PONTOS = "pontos"          # diferenca em pontos percentuais

MAIOR_MELHOR = "maior_melhor"
MENOR_MELHOR = "menor_melhor"

LIMITE_INSIGHTS = 5
TOLERANCIA_IGUALDADE = 0.005

MENSAGEM_SEM_DIFERENCAS = (
    "Os cenários selecionados têm configurações muito similares. "
    "Configure valores diferentes para ver comparações."
)


@dataclass(frozen=True)
class InsightRule:
    """
    Uma linha da tabela de insights.
    `palavras` = (texto quando o comparado sobe, texto quando desce).
    Placeholders do template: comparado, base, palavra, delta, delta_abs.
    """

    metrica: str
    limite: float
    modo: str
    polaridade: str
    template: str
    palavras: Tuple[str, str]
    template_igual: Optional[str] = None


@dataclass(frozen=True)
class Insight:
    tipo: str
    mensagem: str
    regime: Optional[str] = None
    metrica: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


REGRAS_PADRAO: Tuple[InsightRule, ...] = (
    InsightRule(
        metrica="receita",
        limite=0.1,
        modo=MODO_PERCENTUAL,
        polaridade=MAIOR_MELHOR,
        template="{comparado} tem receita {palavra} em {delta_abs:.1f}% comparado a {base}",
        palavras=("maior", "menor"),
        template_igual="{comparado} tem a mesma receita que {base}",
    ),
    InsightRule(
        metrica="carga_tributaria",
        limite=0.5,
        modo=MODO_PONTOS,
        polaridade=MENOR_MELHOR,
        template="{comparado} tem carga tributária {palavra} ({delta:+.1f}pp) que {base}",
        palavras=("maior", "menor"),
    ),
    InsightRule(
        metrica="margem_lucro",
        limite=0.5,
        modo=MODO_PONTOS,
        polaridade=MAIOR_MELHOR,
        template="{comparado} tem margem líquida {palavra} ({delta:+.1f}pp) que {base}",
        palavras=("melhor", "pior"),
    ),
)


def _delta(regra: InsightRule, valor_base: float, valor_comparado: float) -> float:
    diferenca = valor_comparado - valor_base
    if regra.modo == MODO_PONTOS:
        return diferenca
    return diferenca / valor_base * 100 if valor_base != 0 else 0.0


def avaliar_regra(
    regra: InsightRule,
    base: str,
    comparado: str,
    valor_base: float,
    valor_comparado: float,
) -> Optional[Insight]:
    delta = _delta(regra, valor_base, valor_comparado)
    nomes = {"base": regime_display(base), "comparado": regime_display(comparado)}

    if abs(delta) > regra.limite:
        subiu = delta > 0
        bom = subiu if regra.polaridade == MAIOR_MELHOR else not subiu
        mensagem = regra.template.format(
            palavra=regra.palavras[0] if subiu else regra.palavras[1],
            delta=delta,
            delta_abs=abs(delta),
            **nomes,
        )
        return Insight(TIPO_SUCCESS if bom else TIPO_ALERT, mensagem, comparado, regra.metrica)

    if regra.template_igual and abs(valor_comparado - valor_base) < TOLERANCIA_IGUALDADE:
        return Insight(TIPO_WARNING, regra.template_igual.format(**nomes), comparado, regra.metrica)
    return None


def gerar_insights(
    base: str,
    metricas_base: Mapping[str, float],
    comparados: Sequence[Tuple[str, Mapping[str, float]]],
    regras: Sequence[InsightRule] = REGRAS_PADRAO,
    limite: int = LIMITE_INSIGHTS,
) -> List[Insight]:
    """
    Aplica a tabela de regras a cada regime comparado, na ordem de selecao.
    Sem nenhum insight qualificado, devolve um unico aviso de configuracoes similares.
    """
    insights: List[Insight] = []
    for regime, metricas in comparados:
        for regra in regras:
            insight = avaliar_regra(
                regra,
                base,
                regime,
                float(metricas_base.get(regra.metrica, 0.0)),
                float(metricas.get(regra.metrica, 0.0)),
            )
            if insight is not None:
                insights.append(insight)

    if not insights:
        insights.append(Insight(TIPO_WARNING, MENSAGEM_SEM_DIFERENCAS))
    return insights[:limite]
