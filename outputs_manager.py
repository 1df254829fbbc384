import os
from typing import List, Optional, Sequence

EXTENSOES_RELATORIO = (".txt", ".csv")


def listar_relatorios(pasta: str = "outputs", extensoes: Sequence[str] = EXTENSOES_RELATORIO) -> List[str]:
    """Arquivos exportados na pasta, mais recentes primeiro."""
    if not os.path.isdir(pasta):
        return []

    arquivos = []
    for nome in os.listdir(pasta):
        if nome.lower().endswith(tuple(extensoes)):
            caminho = os.path.join(pasta, nome)
            arquivos.append((nome, os.path.getmtime(caminho)))

    arquivos.sort(key=lambda x: x[1], reverse=True)
    return [nome for nome, _ in arquivos]


def ler_relatorio(nome_arquivo: str, pasta: str = "outputs") -> Optional[str]:
    caminho = os.path.join(pasta, os.path.basename(nome_arquivo))
    if not os.path.isfile(caminho):
        return None

    with open(caminho, "r", encoding="utf-8-sig") as f:
        return f.read()
