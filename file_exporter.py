import os
from datetime import datetime
from typing import Any, Dict, List, Sequence

import pandas as pd

from regime_comparator import ComparativeAnalysis
from regime_utils import regime_display
from tax_engine import ProjecaoMensal


def _nome_arquivo(nome_base: str, extensao: str) -> str:
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    return f"{nome_base}_{timestamp}.{extensao}"


def salvar_relatorio_txt(conteudo: str, nome_base: str = "relatorio", pasta: str = "outputs") -> str:
    os.makedirs(pasta, exist_ok=True)
    caminho = os.path.join(pasta, _nome_arquivo(nome_base, "txt"))

    with open(caminho, "w", encoding="utf-8") as f:
        f.write(conteudo)

    return caminho


def projecao_dataframe(projecao: Sequence[ProjecaoMensal]) -> pd.DataFrame:
    colunas = ["mes", "ano", "receita", "icms", "pis", "cofins", "irpj", "csll", "iss", "total_impostos", "lucro_liquido"]
    linhas = [{c: getattr(p, c) for c in colunas} for p in projecao]
    return pd.DataFrame(linhas, columns=colunas)


def variacoes_dataframe(analise: ComparativeAnalysis) -> pd.DataFrame:
    colunas = ["metrica", "regime_base", "regime_comparado", "valor_base", "valor_comparado", "variacao_absoluta", "variacao_percentual"]
    linhas: List[Dict[str, Any]] = [
        {
            "metrica": v.rotulo,
            "regime_base": regime_display(v.regime_base),
            "regime_comparado": regime_display(v.regime_comparado),
            "valor_base": v.valor_base,
            "valor_comparado": v.valor_comparado,
            "variacao_absoluta": v.variacao_absoluta,
            "variacao_percentual": v.variacao_percentual,
        }
        for v in analise.variacoes
    ]
    return pd.DataFrame(linhas, columns=colunas)


def metricas_dataframe(analise: ComparativeAnalysis) -> pd.DataFrame:
    linhas: List[Dict[str, Any]] = []
    for regime in analise.regimes:
        m = analise.metricas.get(regime)
        if m is None:
            continue
        linhas.append(
            {
                "regime": regime_display(regime),
                "receita": m.receita,
                **m.impostos,
                "total_impostos": m.total_impostos,
                "lucro_liquido": m.lucro_liquido,
                "carga_tributaria": m.carga_tributaria,
                "margem_lucro": m.margem_lucro,
            }
        )
    return pd.DataFrame(linhas)


def dataframe_para_csv(df: pd.DataFrame) -> bytes:
    """CSV no padrao de planilha BR (';' e virgula decimal), com BOM para o Excel."""
    return df.to_csv(index=False, sep=";", decimal=",").encode("utf-8-sig")


def salvar_csv(df: pd.DataFrame, nome_base: str = "dados", pasta: str = "outputs") -> str:
    os.makedirs(pasta, exist_ok=True)
    caminho = os.path.join(pasta, _nome_arquivo(nome_base, "csv"))
    with open(caminho, "wb") as f:
        f.write(dataframe_para_csv(df))
    return caminho
