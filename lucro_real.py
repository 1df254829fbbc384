from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from dto import (
    CAMPOS_CREDITO_ICMS,
    CAMPOS_CREDITO_PIS_COFINS,
    CREDITO_COM,
    DESPESA_TIPO_DESPESA,
    TaxConfig,
)
from logging_config import get_logger

logger = get_logger("lucro_real")


def _pct(aliquota: float) -> float:
    return aliquota / 100.0


@dataclass(frozen=True)
class ApuracaoICMS:
    base_calculo: float
    base_interna: float
    base_interestadual: float
    aliquota: float
    debito: float
    credito_compras_internas: float
    credito_compras_interestaduais: float
    credito_compras_uso: float
    creditos_adicionais: float
    credito: float
    saldo: float
    a_pagar: float
    credito_proxima_apuracao: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ApuracaoContribuicao:
    """Livro de uma contribuicao nao cumulativa (PIS ou COFINS)."""

    aliquota: float
    base_calculo: float
    debito: float
    base_credito: float
    credito: float
    a_pagar: float
    credito_proxima_apuracao: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ApuracaoPisCofins:
    receita_tributavel: float
    compras_totais: float
    despesas_creditaveis: float
    pis: ApuracaoContribuicao
    cofins: ApuracaoContribuicao

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ApuracaoIRPJCSLL:
    lucro_contabil: float
    lucro_real: float
    despesas_operacionais: float
    aliquota_irpj: float
    aliquota_adicional: float
    aliquota_csll: float
    limite_adicional: float
    irpj_base: float
    base_adicional: float
    irpj_adicional: float
    irpj_a_pagar: float
    csll_a_pagar: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ApuracaoISS:
    base_calculo: float
    aliquota: float
    a_pagar: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def apurar_icms(config: TaxConfig) -> ApuracaoICMS:
    """
    Livro de ICMS (debito x credito).
    - Parcela com substituicao tributaria nao gera debito (recolhido na origem).
    - Credito acima do debito vira saldo para a proxima apuracao, nunca restituicao.
    """
    config.validar()
    base = config.receita_bruta * (1 - _pct(config.percentual_st))
    debito = base * _pct(config.icms_interno)

    cred_internas = config.compras_internas * _pct(config.icms_interno)
    cred_interestaduais = config.compras_interestaduais * _pct(config.icms_interestadual)
    cred_uso = config.compras_uso * _pct(config.icms_interno)
    adicionais = sum(getattr(config, campo) for campo in CAMPOS_CREDITO_ICMS)
    credito = cred_internas + cred_interestaduais + cred_uso + adicionais

    saldo = debito - credito
    apuracao = ApuracaoICMS(
        base_calculo=base,
        base_interna=base * _pct(config.vendas_internas),
        base_interestadual=base * _pct(config.vendas_interestaduais),
        aliquota=config.icms_interno,
        debito=debito,
        credito_compras_internas=cred_internas,
        credito_compras_interestaduais=cred_interestaduais,
        credito_compras_uso=cred_uso,
        creditos_adicionais=adicionais,
        credito=credito,
        saldo=saldo,
        a_pagar=max(0.0, saldo),
        credito_proxima_apuracao=max(0.0, -saldo),
    )
    logger.debug("icms: debito=%.2f credito=%.2f a_pagar=%.2f", debito, credito, apuracao.a_pagar)
    return apuracao


def _apurar_contribuicao(receita_tributavel: float, base_credito: float, aliquota: float) -> ApuracaoContribuicao:
    debito = receita_tributavel * _pct(aliquota)
    credito = base_credito * _pct(aliquota)
    return ApuracaoContribuicao(
        aliquota=aliquota,
        base_calculo=receita_tributavel,
        debito=debito,
        base_credito=base_credito,
        credito=credito,
        a_pagar=max(0.0, debito - credito),
        credito_proxima_apuracao=max(0.0, credito - debito),
    )


def despesas_com_credito(config: TaxConfig) -> float:
    """Categorias fixas creditaveis + itens dinamicos marcados com credito."""
    fixas = sum(getattr(config, campo) for campo in CAMPOS_CREDITO_PIS_COFINS)
    dinamicas = sum(d.valor for d in config.despesas if d.credito == CREDITO_COM)
    return fixas + dinamicas


def apurar_pis_cofins(config: TaxConfig) -> ApuracaoPisCofins:
    """PIS/COFINS nao cumulativos; a parcela monofasica sai das duas bases igualmente."""
    config.validar()
    receita_tributavel = config.receita_bruta * (1 - _pct(config.percentual_monofasico))
    compras = config.compras_internas + config.compras_interestaduais + config.compras_uso
    despesas = despesas_com_credito(config)
    base_credito = compras + despesas

    apuracao = ApuracaoPisCofins(
        receita_tributavel=receita_tributavel,
        compras_totais=compras,
        despesas_creditaveis=despesas,
        pis=_apurar_contribuicao(receita_tributavel, base_credito, config.pis_aliquota),
        cofins=_apurar_contribuicao(receita_tributavel, base_credito, config.cofins_aliquota),
    )
    logger.debug(
        "pis/cofins: base=%.2f credito_base=%.2f pis=%.2f cofins=%.2f",
        receita_tributavel,
        base_credito,
        apuracao.pis.a_pagar,
        apuracao.cofins.a_pagar,
    )
    return apuracao


def despesas_operacionais(config: TaxConfig) -> float:
    """Somente itens tipo=despesa; custos ja estao no CMV."""
    return sum(d.valor for d in config.despesas if d.tipo == DESPESA_TIPO_DESPESA)


def apurar_irpj_csll(config: TaxConfig) -> ApuracaoIRPJCSLL:
    """
    IRPJ/CSLL sobre o lucro real.
    O lucro real fica com sinal (prejuizo visivel no relatorio); so a base tributavel e limitada a zero.
    O limite do adicional e aplicado exatamente como configurado.
    """
    config.validar()
    operacionais = despesas_operacionais(config)
    lucro_contabil = config.receita_bruta - config.cmv_total - operacionais
    lucro_real = lucro_contabil + config.adicoes_lucro - config.exclusoes_lucro
    base_tributavel = max(0.0, lucro_real)

    irpj_base = base_tributavel * _pct(config.irpj_aliquota)
    base_adicional = max(0.0, lucro_real - config.limite_adicional_irpj)
    irpj_adicional = base_adicional * _pct(config.irpj_adicional_aliquota)

    apuracao = ApuracaoIRPJCSLL(
        lucro_contabil=lucro_contabil,
        lucro_real=lucro_real,
        despesas_operacionais=operacionais,
        aliquota_irpj=config.irpj_aliquota,
        aliquota_adicional=config.irpj_adicional_aliquota,
        aliquota_csll=config.csll_aliquota,
        limite_adicional=config.limite_adicional_irpj,
        irpj_base=irpj_base,
        base_adicional=base_adicional,
        irpj_adicional=irpj_adicional,
        irpj_a_pagar=irpj_base + irpj_adicional,
        csll_a_pagar=base_tributavel * _pct(config.csll_aliquota),
    )
    logger.debug(
        "irpj/csll: lucro_real=%.2f adicional=%.2f irpj=%.2f csll=%.2f",
        lucro_real,
        irpj_adicional,
        apuracao.irpj_a_pagar,
        apuracao.csll_a_pagar,
    )
    return apuracao


def apurar_iss(config: TaxConfig) -> ApuracaoISS:
    config.validar()
    a_pagar = config.receita_bruta * _pct(config.iss_aliquota)
    logger.debug("iss: a_pagar=%.2f", a_pagar)
    return ApuracaoISS(base_calculo=config.receita_bruta, aliquota=config.iss_aliquota, a_pagar=a_pagar)
