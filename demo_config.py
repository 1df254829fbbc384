from __future__ import annotations

import os
from typing import Dict, List

from dto import ExpenseItem, ManualMonthlyEntry, TaxConfig
from regime_utils import REGIME_CODE_PRESUMIDO, REGIME_CODE_SIMPLES
from tax_engine import tax_config_padrao

DEMO_ENV_VAR = "LRE_DEMO"
DEMO_EMPRESA_ID = "empresa-demo"


def _is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def resolve_demo_mode(toggle_enabled: bool = False) -> bool:
    """
    Resolve o modo DEMO por OR entre variavel de ambiente e toggle da UI.
    """
    return _is_truthy(os.getenv(DEMO_ENV_VAR)) or bool(toggle_enabled)


def resolve_storage_targets(demo_mode: bool) -> Dict[str, str]:
    """
    Retorna destinos de persistencia para cenarios/lancamentos e exportacoes.
    """
    if demo_mode:
        return {
            "data_pasta": "data_demo",
            "outputs_txt_pasta": "outputs_demo",
            "outputs_csv_pasta": "outputs_demo_csv",
            "outputs_pdf_pasta": "outputs_demo_pdfs",
        }
    return {
        "data_pasta": "data",
        "outputs_txt_pasta": "outputs",
        "outputs_csv_pasta": "outputs_csv",
        "outputs_pdf_pasta": "outputs_pdfs",
    }


def demo_tax_config(example_key: str) -> TaxConfig:
    """
    Configuracoes anuais de exemplo para pre-preenchimento da UI.
    """
    key = (example_key or "").strip().lower()

    if key == "comercio":
        return tax_config_padrao(
            1_800_000.0,
            compras_internas=600_000.0,
            compras_interestaduais=150_000.0,
            compras_uso=20_000.0,
            cmv_total=900_000.0,
            energia_eletrica=24_000.0,
            alugueis=60_000.0,
            frete=18_000.0,
            despesas=[
                ExpenseItem("folha", "Folha administrativa", 240_000.0, "despesa", "sem-credito", "pessoal"),
                ExpenseItem("marketing", "Marketing", 36_000.0, "despesa", "sem-credito"),
                ExpenseItem("embalagens", "Embalagens", 30_000.0, "custo", "com-credito", "insumos"),
            ],
        )

    if key == "servicos":
        return tax_config_padrao(
            1_200_000.0,
            icms_interno=0.0,
            icms_interestadual=0.0,
            iss_aliquota=5.0,
            alugueis=72_000.0,
            energia_eletrica=12_000.0,
            despesas=[
                ExpenseItem("folha", "Folha de pagamento", 480_000.0, "despesa", "sem-credito", "pessoal"),
                ExpenseItem("software", "Licencas de software", 48_000.0, "despesa", "com-credito"),
            ],
        )

    raise ValueError(f"Exemplo DEMO desconhecido: {example_key}")


def demo_lancamentos(ano: int, meses: List[int]) -> List[ManualMonthlyEntry]:
    """Lancamentos manuais de Presumido e Simples para o exemplo comercio."""
    lancamentos: List[ManualMonthlyEntry] = []
    for mes in meses:
        lancamentos.append(
            ManualMonthlyEntry(
                id=f"demo-lp-{ano}-{mes:02d}",
                empresa_id=DEMO_EMPRESA_ID,
                mes=mes,
                ano=ano,
                regime=REGIME_CODE_PRESUMIDO,
                receita=150_000.0,
                icms=9_500.0,
                pis=975.0,
                cofins=4_500.0,
                irpj=1_800.0,
                csll=1_620.0,
            )
        )
        lancamentos.append(
            ManualMonthlyEntry(
                id=f"demo-sn-{ano}-{mes:02d}",
                empresa_id=DEMO_EMPRESA_ID,
                mes=mes,
                ano=ano,
                regime=REGIME_CODE_SIMPLES,
                receita=150_000.0,
                outros=16_350.0,
                observacoes="DAS unificado",
            )
        )
    return lancamentos
