import os
from datetime import datetime

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

MARGEM_X = 40
TOPO = 50
RODAPE = 60
LINHA_ALTURA = 14
MAX_CHARS = 110


def _quebrar(linha: str, largura: int = MAX_CHARS):
    """Quebra simples por caractere; linha vazia vira um unico espaco em branco."""
    if linha == "":
        yield ""
        return
    while len(linha) > largura:
        yield linha[:largura]
        linha = linha[largura:]
    yield linha


def salvar_relatorio_pdf(conteudo: str, nome_base: str = "relatorio", pasta: str = "outputs_pdfs") -> str:
    os.makedirs(pasta, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    caminho = os.path.join(pasta, f"{nome_base}_{timestamp}.pdf")

    c = canvas.Canvas(caminho, pagesize=A4)
    c.setTitle(nome_base)
    _, height = A4
    y = height - TOPO

    for raw_line in conteudo.splitlines():
        for trecho in _quebrar(raw_line.rstrip("\n")):
            if trecho:
                c.drawString(MARGEM_X, y, trecho)
            y -= LINHA_ALTURA
            if y < RODAPE:
                c.showPage()
                y = height - TOPO

    c.save()
    return caminho
