MESES_ABREV = ("Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez")


def _padrao_br(texto: str) -> str:
    # troca separadores estilo US -> BR
    return texto.replace(",", "X").replace(".", ",").replace("X", ".")


def formatar_reais(valor: float) -> str:
    try:
        numero = float(valor)
    except (TypeError, ValueError):
        return f"R$ {valor}"
    if numero < 0:
        return f"-R$ {_padrao_br(f'{abs(numero):,.2f}')}"
    return f"R$ {_padrao_br(f'{numero:,.2f}')}"


def formatar_percentual(valor: float, casas: int = 2, ja_percentual: bool = True) -> str:
    """Formata percentual em pt-BR (ex.: 11,37%). Valores do engine ja estao na escala 0-100."""
    try:
        numero = float(valor)
    except (TypeError, ValueError):
        return f"{valor}%"
    if not ja_percentual:
        numero *= 100.0
    return f"{_padrao_br(f'{numero:,.{casas}f}')}%"


def formatar_pontos(valor: float, casas: int = 1) -> str:
    """Diferenca em pontos percentuais com sinal (ex.: +3,0pp)."""
    return f"{_padrao_br(f'{float(valor):+.{casas}f}')}pp"


def formatar_mes(mes: int, ano: int | None = None) -> str:
    rotulo = MESES_ABREV[mes - 1]
    return f"{rotulo}/{ano}" if ano is not None else rotulo
