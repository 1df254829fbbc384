from typing import List, Optional, Sequence

from dre import montar_dre
from dto import Scenario
from formatters import formatar_mes, formatar_reais
from regime_comparator import ComparativeAnalysis
from report_formatters import (
    render_cobertura_section,
    render_dre_section,
    render_insights_section,
    render_memoria_calculo,
    render_metricas_section,
    render_projecao_section,
    render_resultado_section,
    render_variacoes_section,
    render_vencedor_section,
)
from ruleset_loader import DEFAULT_RULESET_ID, load_ruleset
from tax_engine import ProjecaoMensal

_SEPARADOR = "=============================================="


def _descrever_periodo(cenario: Scenario) -> str:
    p = cenario.periodo
    if p.tipo == "mensal":
        return f"Mensal ({formatar_mes(p.mes, p.ano)})"
    if p.tipo == "trimestral":
        return f"Trimestral ({p.trimestre}º tri/{p.ano})"
    if p.tipo == "semestral":
        return f"Semestral ({p.semestre}º sem/{p.ano})"
    return f"Anual ({p.ano})"


def _descrever_ruleset(ruleset_id: str) -> str:
    metadata = load_ruleset(ruleset_id)
    inicio = metadata.get("vigencia_inicio") or "?"
    fim = metadata.get("vigencia_fim") or "em aberto"
    return f"{ruleset_id} (vigência {inicio} a {fim})"


def montar_relatorio_cenario(
    cenario: Scenario,
    nome_empresa: str = "",
    projecao: Optional[Sequence[ProjecaoMensal]] = None,
    ruleset_id: str = DEFAULT_RULESET_ID,
) -> str:
    linhas: List[str] = []
    linhas.append(_SEPARADOR)
    linhas.append("         RELATÓRIO - LUCRO REAL               ")
    linhas.append(_SEPARADOR)
    linhas.append(f"Empresa: {nome_empresa or cenario.empresa_id}")
    linhas.append(f"Cenário: {cenario.nome} ({cenario.status})")
    linhas.append(f"Período: {_descrever_periodo(cenario)}")
    linhas.append(f"Receita bruta: {formatar_reais(cenario.resultado.receita_bruta_total)}")
    linhas.append(f"Ruleset: {_descrever_ruleset(ruleset_id)}")
    linhas.append("")
    linhas.append(render_resultado_section(cenario.resultado))
    linhas.append("")
    linhas.append(render_memoria_calculo(cenario.config))
    linhas.append("")
    linhas.append(render_dre_section(montar_dre(cenario.resultado)))
    if projecao:
        linhas.append("")
        linhas.append(render_projecao_section(projecao))
    linhas.append("")
    linhas.append("Observação: cálculo do Lucro Real com as regras implementadas; não substitui a apuração contábil.")
    linhas.append(_SEPARADOR)
    return "\n".join(linhas)


def montar_relatorio_comparativo(analise: ComparativeAnalysis, nome_empresa: str = "") -> str:
    linhas: List[str] = []
    linhas.append(_SEPARADOR)
    linhas.append("       RELATÓRIO - COMPARATIVO DE REGIMES     ")
    linhas.append(_SEPARADOR)
    linhas.append(f"Empresa: {nome_empresa or analise.empresa_id}")
    linhas.append(f"Ano: {analise.ano}")
    meses = ", ".join(formatar_mes(m) for m in analise.meses_selecionados) or "nenhum"
    linhas.append(f"Meses selecionados: {meses}")
    linhas.append("")
    linhas.append(render_cobertura_section(analise))
    if analise.has_data:
        linhas.append("")
        linhas.append(render_metricas_section(analise))
        linhas.append("")
        linhas.append(render_variacoes_section(analise))
        linhas.append("")
        linhas.append(render_insights_section(analise))
        linhas.append("")
        linhas.append(render_vencedor_section(analise))
    linhas.append(_SEPARADOR)
    return "\n".join(linhas)
