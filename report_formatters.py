from __future__ import annotations

from typing import List, Sequence

from dre import DRE, linhas_dre
from dto import TaxConfig, TaxResult
from formatters import formatar_mes, formatar_percentual, formatar_pontos, formatar_reais
from lucro_real import apurar_icms, apurar_irpj_csll, apurar_pis_cofins
from regime_comparator import ComparativeAnalysis
from regime_utils import regime_display
from tax_engine import ProjecaoMensal

_ROTULOS_IMPOSTO = (
    ("icms_a_pagar", "ICMS"),
    ("pis_a_pagar", "PIS"),
    ("cofins_a_pagar", "COFINS"),
    ("irpj_a_pagar", "IRPJ"),
    ("csll_a_pagar", "CSLL"),
    ("iss_a_pagar", "ISS"),
)


def render_resultado_section(resultado: TaxResult) -> str:
    lines: List[str] = ["=== IMPOSTOS A PAGAR (LUCRO REAL) ==="]
    lines.append("Imposto | Alíquota | Valor")
    lines.append("------------------------------------------------")
    aliquotas = {
        "icms_a_pagar": resultado.aliquota_icms,
        "pis_a_pagar": resultado.aliquota_pis,
        "cofins_a_pagar": resultado.aliquota_cofins,
        "irpj_a_pagar": resultado.aliquota_irpj,
        "csll_a_pagar": resultado.aliquota_csll,
        "iss_a_pagar": resultado.aliquota_iss,
    }
    for campo, rotulo in _ROTULOS_IMPOSTO:
        lines.append(
            f"{rotulo} | {formatar_percentual(aliquotas[campo])} | {formatar_reais(getattr(resultado, campo))}"
        )
    lines.append(f"Federais: {formatar_reais(resultado.total_impostos_federais)}")
    lines.append(f"Estaduais: {formatar_reais(resultado.total_impostos_estaduais)}")
    lines.append(f"Municipais: {formatar_reais(resultado.total_impostos_municipais)}")
    lines.append(f"Total de impostos: {formatar_reais(resultado.total_impostos)}")
    lines.append(f"Carga tributária: {formatar_percentual(resultado.carga_tributaria)}")
    lines.append(f"Lucro líquido: {formatar_reais(resultado.lucro_liquido)}")
    lines.append(f"Margem líquida: {formatar_percentual(resultado.margem_lucro)}")

    saldos = [
        ("ICMS", resultado.credito_icms_proxima_apuracao),
        ("PIS", resultado.credito_pis_proxima_apuracao),
        ("COFINS", resultado.credito_cofins_proxima_apuracao),
    ]
    credores = [(nome, valor) for nome, valor in saldos if valor > 0]
    if credores:
        lines.append("Saldo credor para a próxima apuração:")
        for nome, valor in credores:
            lines.append(f"- {nome}: {formatar_reais(valor)}")
    return "\n".join(lines)


def render_memoria_calculo(config: TaxConfig) -> str:
    icms = apurar_icms(config)
    pis_cofins = apurar_pis_cofins(config)
    irpj = apurar_irpj_csll(config)

    lines: List[str] = ["=== MEMÓRIA DE CÁLCULO ==="]
    lines.append("ICMS")
    lines.append(f"  Base de cálculo: {formatar_reais(icms.base_calculo)}")
    lines.append(f"    vendas internas: {formatar_reais(icms.base_interna)}")
    lines.append(f"    vendas interestaduais: {formatar_reais(icms.base_interestadual)}")
    lines.append(f"  Débito: {formatar_reais(icms.debito)}")
    lines.append(f"  Crédito compras internas: {formatar_reais(icms.credito_compras_internas)}")
    lines.append(f"  Crédito compras interestaduais: {formatar_reais(icms.credito_compras_interestaduais)}")
    lines.append(f"  Crédito compras uso/consumo: {formatar_reais(icms.credito_compras_uso)}")
    lines.append(f"  Créditos adicionais: {formatar_reais(icms.creditos_adicionais)}")
    lines.append(f"  A pagar: {formatar_reais(icms.a_pagar)}")

    lines.append("PIS/COFINS (não cumulativo)")
    lines.append(f"  Receita tributável: {formatar_reais(pis_cofins.receita_tributavel)}")
    lines.append(f"  Compras: {formatar_reais(pis_cofins.compras_totais)}")
    lines.append(f"  Despesas com crédito: {formatar_reais(pis_cofins.despesas_creditaveis)}")
    for nome, livro in (("PIS", pis_cofins.pis), ("COFINS", pis_cofins.cofins)):
        lines.append(
            f"  {nome}: débito {formatar_reais(livro.debito)} | crédito {formatar_reais(livro.credito)} | "
            f"a pagar {formatar_reais(livro.a_pagar)}"
        )

    lines.append("IRPJ/CSLL")
    lines.append(f"  Lucro contábil: {formatar_reais(irpj.lucro_contabil)}")
    lines.append(f"  (+) Adições: {formatar_reais(config.adicoes_lucro)}")
    lines.append(f"  (-) Exclusões: {formatar_reais(config.exclusoes_lucro)}")
    lines.append(f"  Lucro real: {formatar_reais(irpj.lucro_real)}")
    lines.append(f"  IRPJ ({formatar_percentual(irpj.aliquota_irpj)}): {formatar_reais(irpj.irpj_base)}")
    lines.append(
        f"  Adicional ({formatar_percentual(irpj.aliquota_adicional)} sobre o excedente de "
        f"{formatar_reais(irpj.limite_adicional)}): {formatar_reais(irpj.irpj_adicional)}"
    )
    lines.append(f"  CSLL ({formatar_percentual(irpj.aliquota_csll)}): {formatar_reais(irpj.csll_a_pagar)}")
    return "\n".join(lines)


def render_dre_section(dre: DRE) -> str:
    lines: List[str] = ["=== DRE ==="]
    for rotulo, valor in linhas_dre(dre):
        lines.append(f"{rotulo}: {formatar_reais(valor)}")
    lines.append(f"Margem bruta: {formatar_percentual(dre.margem_bruta)}")
    lines.append(f"Margem líquida: {formatar_percentual(dre.margem_liquida)}")
    return "\n".join(lines)


def render_projecao_section(projecao: Sequence[ProjecaoMensal]) -> str:
    lines: List[str] = ["=== PROJEÇÃO MENSAL ==="]
    if not projecao:
        lines.append("Sem projeção.")
        return "\n".join(lines)
    lines.append("Mês | Receita | Impostos | Lucro líquido")
    lines.append("------------------------------------------------")
    for p in projecao:
        lines.append(
            f"{formatar_mes(p.mes, p.ano)} | {formatar_reais(p.receita)} | "
            f"{formatar_reais(p.total_impostos)} | {formatar_reais(p.lucro_liquido)}"
        )
    lines.append(
        "Observação: a soma mensal pode divergir do cálculo anual "
        "(o limite do adicional de IRPJ é aplicado por período)."
    )
    return "\n".join(lines)


def render_cobertura_section(analise: ComparativeAnalysis) -> str:
    lines: List[str] = ["=== COBERTURA DE DADOS ==="]
    if not analise.has_data:
        lines.append("Dados insuficientes: são necessários ao menos dois regimes com dados.")
        return "\n".join(lines)

    lines.append(f"Cobertura: {formatar_percentual(analise.percentual_cobertura, casas=1)}")
    cabecalho = "Mês | " + " | ".join(regime_display(r) for r in analise.regimes)
    lines.append(cabecalho)
    for mes, por_regime in analise.cobertura_por_mes.items():
        marcas = " | ".join("ok" if por_regime[r] else "-" for r in analise.regimes)
        lines.append(f"{formatar_mes(mes)} | {marcas}")
    if analise.regimes_incompletos:
        nomes = ", ".join(regime_display(r) for r in analise.regimes_incompletos)
        lines.append(f"Regimes incompletos: {nomes}")
    return "\n".join(lines)


def render_metricas_section(analise: ComparativeAnalysis) -> str:
    lines: List[str] = ["=== COMPARATIVO ENTRE REGIMES ==="]
    if not analise.metricas:
        lines.append("Sem dados para comparativo.")
        return "\n".join(lines)
    lines.append("Regime | Receita | Impostos | Carga | Lucro líquido | Margem")
    lines.append("------------------------------------------------")
    for regime in analise.regimes:
        m = analise.metricas.get(regime)
        if m is None:
            continue
        lines.append(
            f"{regime_display(regime)} | {formatar_reais(m.receita)} | {formatar_reais(m.total_impostos)} | "
            f"{formatar_percentual(m.carga_tributaria)} | {formatar_reais(m.lucro_liquido)} | "
            f"{formatar_percentual(m.margem_lucro)}"
        )
    return "\n".join(lines)


def render_variacoes_section(analise: ComparativeAnalysis) -> str:
    lines: List[str] = ["=== VARIAÇÕES ==="]
    if not analise.variacoes:
        lines.append("Sem variações.")
        return "\n".join(lines)
    for v in analise.variacoes:
        if v.metrica in ("margem_lucro", "carga_tributaria"):
            delta = formatar_pontos(v.variacao_absoluta)
        else:
            delta = f"{formatar_reais(v.variacao_absoluta)} ({formatar_percentual(v.variacao_percentual, casas=1)})"
        lines.append(
            f"{v.rotulo}: {regime_display(v.regime_comparado)} vs {regime_display(v.regime_base)} = {delta}"
        )
    return "\n".join(lines)


def render_insights_section(analise: ComparativeAnalysis) -> str:
    lines: List[str] = ["=== INSIGHTS ==="]
    if not analise.insights:
        lines.append("Sem insights.")
        return "\n".join(lines)
    for insight in analise.insights:
        lines.append(f"[{insight.tipo.upper()}] {insight.mensagem}")
    return "\n".join(lines)


def render_vencedor_section(analise: ComparativeAnalysis) -> str:
    lines: List[str] = ["=== REGIME MAIS VANTAJOSO ==="]
    vencedor = analise.vencedor
    if vencedor is None:
        lines.append("Indisponível.")
        return "\n".join(lines)
    lines.append(vencedor.justificativa)
    lines.append(
        f"Economia vs. segundo colocado: {formatar_reais(vencedor.economia)} "
        f"({formatar_percentual(vencedor.economia_percentual, casas=1)})"
    )
    if analise.analise_por_imposto:
        lines.append("Por imposto (menor valor):")
        for tipo, item in analise.analise_por_imposto.items():
            if item.maior_valor <= 0:
                continue
            lines.append(
                f"- {tipo.upper()}: {regime_display(item.vencedor)} "
                f"(diferença {formatar_reais(item.economia)})"
            )
    return "\n".join(lines)
