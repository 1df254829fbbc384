from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Tuple

from dto import TaxResult


@dataclass(frozen=True)
class DRE:
    """Demonstracao do resultado montada a partir de um TaxResult ja calculado."""

    receita_bruta: float
    deducao_icms: float
    deducao_pis: float
    deducao_cofins: float
    deducao_iss: float
    total_deducoes: float
    receita_liquida: float
    cmv: float
    lucro_bruto: float
    despesas_operacionais: float
    lucro_antes_ir_csll: float
    irpj: float
    csll: float
    total_impostos_lucro: float
    lucro_liquido: float
    margem_bruta: float
    margem_liquida: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _margem(valor: float, receita: float) -> float:
    return valor / receita * 100 if receita > 0 else 0.0


def montar_dre(resultado: TaxResult) -> DRE:
    receita = resultado.receita_bruta_total
    deducoes = (
        resultado.icms_a_pagar
        + resultado.pis_a_pagar
        + resultado.cofins_a_pagar
        + resultado.iss_a_pagar
    )
    receita_liquida = receita - deducoes
    lucro_bruto = receita_liquida - resultado.cmv
    lucro_antes = lucro_bruto - resultado.despesas_operacionais
    impostos_lucro = resultado.irpj_a_pagar + resultado.csll_a_pagar
    lucro_liquido = lucro_antes - impostos_lucro

    return DRE(
        receita_bruta=receita,
        deducao_icms=resultado.icms_a_pagar,
        deducao_pis=resultado.pis_a_pagar,
        deducao_cofins=resultado.cofins_a_pagar,
        deducao_iss=resultado.iss_a_pagar,
        total_deducoes=deducoes,
        receita_liquida=receita_liquida,
        cmv=resultado.cmv,
        lucro_bruto=lucro_bruto,
        despesas_operacionais=resultado.despesas_operacionais,
        lucro_antes_ir_csll=lucro_antes,
        irpj=resultado.irpj_a_pagar,
        csll=resultado.csll_a_pagar,
        total_impostos_lucro=impostos_lucro,
        lucro_liquido=lucro_liquido,
        margem_bruta=_margem(lucro_bruto, receita),
        margem_liquida=_margem(lucro_liquido, receita),
    )


def linhas_dre(dre: DRE) -> List[Tuple[str, float]]:
    """Linhas na ordem de apresentacao (rotulo, valor)."""
    return [
        ("Receita bruta de vendas", dre.receita_bruta),
        ("(-) ICMS", -dre.deducao_icms),
        ("(-) PIS", -dre.deducao_pis),
        ("(-) COFINS", -dre.deducao_cofins),
        ("(-) ISS", -dre.deducao_iss),
        ("= Receita liquida", dre.receita_liquida),
        ("(-) CMV", -dre.cmv),
        ("= Lucro bruto", dre.lucro_bruto),
        ("(-) Despesas operacionais", -dre.despesas_operacionais),
        ("= Lucro antes do IRPJ/CSLL", dre.lucro_antes_ir_csll),
        ("(-) IRPJ", -dre.irpj),
        ("(-) CSLL", -dre.csll),
        ("= Lucro liquido", dre.lucro_liquido),
    ]
