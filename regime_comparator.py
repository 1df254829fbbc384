from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dto import (
    CAMPOS_IMPOSTOS_MANUAIS,
    STATUS_ARQUIVADO,
    ManualMonthlyEntry,
    Scenario,
)
from input_utils import InvalidInputError, normalizar_meses
from insight_engine import Insight, gerar_insights
from logging_config import get_logger
from regime_utils import (
    REGIME_CODE_REAL,
    canonicalize_regime,
    canonicalize_regimes,
    regime_display,
)

logger = get_logger("regime_comparator")

ORIGEM_CENARIO = "cenario"
ORIGEM_MANUAL = "manual"

TIPOS_IMPOSTO = CAMPOS_IMPOSTOS_MANUAIS

# (chave, rotulo) na ordem em que as variacoes sao reportadas
METRICAS_VARIACAO: Tuple[Tuple[str, str], ...] = (
    ("receita", "Receita Bruta"),
    ("total_impostos", "Total de Impostos"),
    ("lucro_liquido", "Lucro Líquido"),
    ("margem_lucro", "Margem Líquida (%)"),
    ("carga_tributaria", "Carga Tributária (%)"),
    ("icms", "ICMS"),
    ("pis", "PIS"),
    ("cofins", "COFINS"),
    ("irpj", "IRPJ"),
    ("csll", "CSLL"),
    ("iss", "ISS"),
    ("cpp", "CPP"),
    ("outros", "Outros"),
)


@dataclass(frozen=True)
class FonteRegime:
    """Regime selecionado e os registros que o alimentam."""

    regime: str
    cenarios: Tuple[Scenario, ...] = ()
    lancamentos: Tuple[ManualMonthlyEntry, ...] = ()


@dataclass(frozen=True)
class DadoMensal:
    mes: int
    receita: float
    impostos: Dict[str, float]
    total_impostos: float
    lucro_liquido: float
    origem: str
    referencia_id: str


@dataclass(frozen=True)
class CoberturaRegime:
    regime: str
    meses_com_dados: List[int]
    meses_faltantes: List[int]
    percentual_cobertura: float


@dataclass(frozen=True)
class MetricasRegime:
    regime: str
    receita: float
    impostos: Dict[str, float]
    total_impostos: float
    lucro_liquido: float
    carga_tributaria: float
    margem_lucro: float
    dados_mensais: List[DadoMensal]

    def valor(self, metrica: str) -> float:
        if metrica in self.impostos:
            return self.impostos[metrica]
        return float(getattr(self, metrica))

    def valores_insight(self) -> Dict[str, float]:
        return {chave: self.valor(chave) for chave, _ in METRICAS_VARIACAO}


@dataclass(frozen=True)
class Variacao:
    regime_base: str
    regime_comparado: str
    metrica: str
    rotulo: str
    valor_base: float
    valor_comparado: float
    variacao_absoluta: float
    variacao_percentual: float


@dataclass(frozen=True)
class Vencedor:
    regime: str
    carga_tributaria: float
    total_impostos: float
    economia: float
    economia_percentual: float
    justificativa: str


@dataclass(frozen=True)
class AnaliseImposto:
    tipo: str
    valores: Dict[str, float]
    vencedor: str
    maior_valor: float
    menor_valor: float
    economia: float
    percentual_sobre_total: Dict[str, float]


@dataclass(frozen=True)
class ComparativeAnalysis:
    empresa_id: str
    ano: int
    meses_selecionados: List[int]
    regimes: List[str]
    has_data: bool
    cobertura_por_mes: Dict[int, Dict[str, bool]] = field(default_factory=dict)
    cobertura_por_regime: Dict[str, CoberturaRegime] = field(default_factory=dict)
    percentual_cobertura: float = 0.0
    meses_com_dados: List[int] = field(default_factory=list)
    meses_sem_dados: List[int] = field(default_factory=list)
    regimes_incompletos: List[str] = field(default_factory=list)
    metricas: Dict[str, MetricasRegime] = field(default_factory=dict)
    variacoes: List[Variacao] = field(default_factory=list)
    insights: List[Insight] = field(default_factory=list)
    vencedor: Optional[Vencedor] = None
    analise_por_imposto: Dict[str, AnaliseImposto] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _percentual(parte: float, total: float) -> float:
    return parte / total * 100 if total > 0 else 0.0


def _dados_de_cenarios(
    empresa_id: str,
    ano: int,
    cenarios: Sequence[Scenario],
) -> Dict[int, DadoMensal]:
    """
    Cenario de varios meses contribui pro rata para cada mes coberto.
    Em sobreposicao, prevalece o cenario atualizado por ultimo.
    """
    validos = [
        c
        for c in cenarios
        if c.empresa_id == empresa_id and c.periodo.ano == ano and c.status != STATUS_ARQUIVADO
    ]
    validos.sort(key=lambda c: c.atualizado_em)

    dados: Dict[int, DadoMensal] = {}
    for cenario in validos:
        meses = cenario.periodo.meses()
        fator = 1.0 / len(meses)
        r = cenario.resultado
        impostos = {tipo: 0.0 for tipo in TIPOS_IMPOSTO}
        impostos.update({tipo: valor * fator for tipo, valor in r.impostos_por_tipo().items()})
        # Mesma base dos lancamentos manuais (receita - impostos); custos nao entram no comparativo.
        lucro = (r.receita_bruta_total - r.total_impostos) * fator
        for mes in meses:
            dados[mes] = DadoMensal(
                mes=mes,
                receita=r.receita_bruta_total * fator,
                impostos=dict(impostos),
                total_impostos=r.total_impostos * fator,
                lucro_liquido=lucro,
                origem=ORIGEM_CENARIO,
                referencia_id=cenario.id,
            )
    return dados


def _dados_de_lancamentos(
    empresa_id: str,
    ano: int,
    regime: str,
    lancamentos: Sequence[ManualMonthlyEntry],
) -> Dict[int, DadoMensal]:
    dados: Dict[int, DadoMensal] = {}
    for entry in lancamentos:
        entry.validar()
        if entry.empresa_id != empresa_id or entry.ano != ano:
            continue
        if canonicalize_regime(entry.regime) != regime:
            continue
        if entry.mes in dados:
            raise InvalidInputError(
                "lancamentos",
                entry.chave_natural,
                "mais de um lancamento para a mesma empresa/mes/ano/regime",
            )
        dados[entry.mes] = DadoMensal(
            mes=entry.mes,
            receita=entry.receita,
            impostos=entry.impostos_por_tipo(),
            total_impostos=entry.total_impostos,
            lucro_liquido=entry.lucro_liquido,
            origem=ORIGEM_MANUAL,
            referencia_id=entry.id,
        )
    return dados


def _dados_do_regime(empresa_id: str, ano: int, regime: str, fonte: FonteRegime) -> Dict[int, DadoMensal]:
    if fonte.cenarios and regime != REGIME_CODE_REAL:
        raise InvalidInputError(
            "cenarios",
            regime,
            "cenarios calculados existem apenas para lucro_real; use lancamentos manuais",
        )
    dados = _dados_de_lancamentos(empresa_id, ano, regime, fonte.lancamentos)
    # Cenario calculado prevalece sobre lancamento manual do mesmo mes.
    dados.update(_dados_de_cenarios(empresa_id, ano, fonte.cenarios))
    return dados


def _extrair_metricas(regime: str, mensais: List[DadoMensal]) -> MetricasRegime:
    receita = sum(d.receita for d in mensais)
    impostos = {tipo: sum(d.impostos.get(tipo, 0.0) for d in mensais) for tipo in TIPOS_IMPOSTO}
    total = sum(d.total_impostos for d in mensais)
    lucro = sum(d.lucro_liquido for d in mensais)
    return MetricasRegime(
        regime=regime,
        receita=receita,
        impostos=impostos,
        total_impostos=total,
        lucro_liquido=lucro,
        carga_tributaria=_percentual(total, receita),
        margem_lucro=_percentual(lucro, receita),
        dados_mensais=mensais,
    )


def _calcular_variacoes(base: MetricasRegime, comparados: List[MetricasRegime]) -> List[Variacao]:
    variacoes: List[Variacao] = []
    for comparado in comparados:
        for chave, rotulo in METRICAS_VARIACAO:
            valor_base = base.valor(chave)
            valor_comparado = comparado.valor(chave)
            absoluta = valor_comparado - valor_base
            variacoes.append(
                Variacao(
                    regime_base=base.regime,
                    regime_comparado=comparado.regime,
                    metrica=chave,
                    rotulo=rotulo,
                    valor_base=valor_base,
                    valor_comparado=valor_comparado,
                    variacao_absoluta=absoluta,
                    variacao_percentual=absoluta / valor_base * 100 if valor_base != 0 else 0.0,
                )
            )
    return variacoes


def determinar_vencedor(metricas: List[MetricasRegime]) -> Optional[Vencedor]:
    """Menor carga tributaria; economia medida contra o segundo colocado."""
    if not metricas:
        return None
    ordenados = sorted(metricas, key=lambda m: m.carga_tributaria)
    vencedor = ordenados[0]
    economia = 0.0
    economia_percentual = 0.0
    if len(ordenados) > 1:
        segundo = ordenados[1]
        economia = segundo.total_impostos - vencedor.total_impostos
        economia_percentual = _percentual(economia, segundo.total_impostos)
    return Vencedor(
        regime=vencedor.regime,
        carga_tributaria=vencedor.carga_tributaria,
        total_impostos=vencedor.total_impostos,
        economia=economia,
        economia_percentual=economia_percentual,
        justificativa=(
            f"{regime_display(vencedor.regime)} apresenta a menor carga tributária "
            f"com {vencedor.carga_tributaria:.1f}%"
        ),
    )


def analisar_por_imposto(metricas: List[MetricasRegime]) -> Dict[str, AnaliseImposto]:
    analise: Dict[str, AnaliseImposto] = {}
    if not metricas:
        return analise
    for tipo in TIPOS_IMPOSTO:
        valores = {m.regime: m.impostos.get(tipo, 0.0) for m in metricas}
        percentuais = {m.regime: _percentual(m.impostos.get(tipo, 0.0), m.total_impostos) for m in metricas}
        maior = max(valores.values())
        menor = min(valores.values())
        vencedor = next(regime for regime, valor in valores.items() if valor == menor)
        analise[tipo] = AnaliseImposto(
            tipo=tipo,
            valores=valores,
            vencedor=vencedor,
            maior_valor=maior,
            menor_valor=menor,
            economia=maior - menor,
            percentual_sobre_total=percentuais,
        )
    return analise


def comparar_regimes(
    empresa_id: str,
    ano: int,
    meses: Sequence[int],
    fontes: Sequence[FonteRegime],
) -> ComparativeAnalysis:
    """
    Cobertura, metricas, variacoes e insights entre regimes.
    Menos de dois regimes com dados resulta em has_data=False (nunca excecao).
    """
    meses_sel = normalizar_meses(meses)
    regimes = canonicalize_regimes([f.regime for f in fontes])

    dados_por_regime: Dict[str, Dict[int, DadoMensal]] = {}
    for regime, fonte in zip(regimes, fontes):
        dados = _dados_do_regime(empresa_id, ano, regime, fonte)
        dados_por_regime[regime] = {mes: dados[mes] for mes in meses_sel if mes in dados}

    metricas: Dict[str, MetricasRegime] = {}
    for regime in regimes:
        mensais = [dados_por_regime[regime][mes] for mes in sorted(dados_por_regime[regime])]
        if mensais:
            metricas[regime] = _extrair_metricas(regime, mensais)

    if len(metricas) < 2:
        logger.info(
            "comparativo %s/%s sem dados suficientes: %d regime(s) com dados",
            empresa_id,
            ano,
            len(metricas),
        )
        return ComparativeAnalysis(
            empresa_id=empresa_id,
            ano=ano,
            meses_selecionados=meses_sel,
            regimes=regimes,
            has_data=False,
            metricas=metricas,
        )

    cobertura_por_mes = {
        mes: {regime: mes in dados_por_regime[regime] for regime in regimes} for mes in meses_sel
    }
    cobertura_por_regime: Dict[str, CoberturaRegime] = {}
    for regime in regimes:
        presentes = [mes for mes in meses_sel if cobertura_por_mes[mes][regime]]
        faltantes = [mes for mes in meses_sel if not cobertura_por_mes[mes][regime]]
        cobertura_por_regime[regime] = CoberturaRegime(
            regime=regime,
            meses_com_dados=presentes,
            meses_faltantes=faltantes,
            percentual_cobertura=_percentual(len(presentes), len(meses_sel)),
        )
        if faltantes:
            logger.info("regime %s sem dados nos meses %s", regime, faltantes)

    completos = [mes for mes in meses_sel if all(cobertura_por_mes[mes].values())]
    sem_dados = [mes for mes in meses_sel if not any(cobertura_por_mes[mes].values())]
    incompletos = [r for r in regimes if cobertura_por_regime[r].meses_faltantes]

    ordenadas = [metricas[r] for r in regimes if r in metricas]
    base, comparados = ordenadas[0], ordenadas[1:]

    insights = gerar_insights(
        base.regime,
        base.valores_insight(),
        [(m.regime, m.valores_insight()) for m in comparados],
    )

    return ComparativeAnalysis(
        empresa_id=empresa_id,
        ano=ano,
        meses_selecionados=meses_sel,
        regimes=regimes,
        has_data=True,
        cobertura_por_mes=cobertura_por_mes,
        cobertura_por_regime=cobertura_por_regime,
        percentual_cobertura=_percentual(len(completos), len(meses_sel)),
        meses_com_dados=completos,
        meses_sem_dados=sem_dados,
        regimes_incompletos=incompletos,
        metricas=metricas,
        variacoes=_calcular_variacoes(base, comparados),
        insights=insights,
        vencedor=determinar_vencedor(ordenadas),
        analise_por_imposto=analisar_por_imposto(ordenadas),
    )
