from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from dto import (
    CAMPOS_FLUXO,
    STATUS_CENARIO,
    STATUS_RASCUNHO,
    PeriodoCenario,
    Scenario,
    TaxConfig,
    TaxResult,
)
from input_utils import InvalidInputError, exigir_finito, exigir_opcao, validar_periodicidade
from logging_config import get_logger
from lucro_real import apurar_icms, apurar_irpj_csll, apurar_iss, apurar_pis_cofins
from ruleset_loader import DEFAULT_RULESET_ID, get_real_params, required_float, ruleset_error

logger = get_logger("tax_engine")

ALIQUOTAS_RULESET = (
    "icms_interno",
    "icms_interestadual",
    "pis_aliquota",
    "cofins_aliquota",
    "irpj_aliquota",
    "irpj_adicional_aliquota",
    "csll_aliquota",
    "iss_aliquota",
)


def _razao_percentual(numerador: float, denominador: float) -> float:
    if denominador > 0:
        return numerador / denominador * 100
    return 0.0


def calcular_impostos(config: TaxConfig) -> TaxResult:
    """
    Agrega ICMS, PIS/COFINS, IRPJ/CSLL e ISS em um TaxResult.
    Funcao pura do snapshot recebido: mesma configuracao, mesmo resultado.
    """
    config.validar()

    icms = apurar_icms(config)
    pis_cofins = apurar_pis_cofins(config)
    irpj_csll = apurar_irpj_csll(config)
    iss = apurar_iss(config)

    icms_a_pagar = max(0.0, icms.a_pagar)
    pis_a_pagar = max(0.0, pis_cofins.pis.a_pagar)
    cofins_a_pagar = max(0.0, pis_cofins.cofins.a_pagar)
    irpj_a_pagar = max(0.0, irpj_csll.irpj_a_pagar)
    csll_a_pagar = max(0.0, irpj_csll.csll_a_pagar)
    iss_a_pagar = max(0.0, iss.a_pagar)

    federais = pis_a_pagar + cofins_a_pagar + irpj_a_pagar + csll_a_pagar
    total = icms_a_pagar + federais + iss_a_pagar

    receita = config.receita_bruta
    lucro_liquido = receita - config.cmv_total - irpj_csll.despesas_operacionais - total

    resultado = TaxResult(
        icms_a_pagar=icms_a_pagar,
        pis_a_pagar=pis_a_pagar,
        cofins_a_pagar=cofins_a_pagar,
        irpj_a_pagar=irpj_a_pagar,
        csll_a_pagar=csll_a_pagar,
        iss_a_pagar=iss_a_pagar,
        credito_icms_proxima_apuracao=icms.credito_proxima_apuracao,
        credito_pis_proxima_apuracao=pis_cofins.pis.credito_proxima_apuracao,
        credito_cofins_proxima_apuracao=pis_cofins.cofins.credito_proxima_apuracao,
        debito_icms=icms.debito,
        credito_icms=icms.credito,
        debito_pis=pis_cofins.pis.debito,
        credito_pis=pis_cofins.pis.credito,
        debito_cofins=pis_cofins.cofins.debito,
        credito_cofins=pis_cofins.cofins.credito,
        base_calculo_icms=icms.base_calculo,
        base_calculo_pis=pis_cofins.receita_tributavel,
        base_calculo_cofins=pis_cofins.receita_tributavel,
        base_calculo_irpj=max(0.0, irpj_csll.lucro_real),
        base_calculo_csll=max(0.0, irpj_csll.lucro_real),
        irpj_base=irpj_csll.irpj_base,
        irpj_adicional=irpj_csll.irpj_adicional,
        base_adicional_irpj=irpj_csll.base_adicional,
        limite_adicional_irpj=irpj_csll.limite_adicional,
        aliquota_icms=config.icms_interno,
        aliquota_pis=config.pis_aliquota,
        aliquota_cofins=config.cofins_aliquota,
        aliquota_irpj=config.irpj_aliquota,
        aliquota_irpj_adicional=config.irpj_adicional_aliquota,
        aliquota_csll=config.csll_aliquota,
        aliquota_iss=config.iss_aliquota,
        total_impostos_federais=federais,
        total_impostos_estaduais=icms_a_pagar,
        total_impostos_municipais=iss_a_pagar,
        total_impostos=total,
        receita_bruta_total=receita,
        cmv=config.cmv_total,
        despesas_operacionais=irpj_csll.despesas_operacionais,
        lucro_contabil=irpj_csll.lucro_contabil,
        lucro_real=irpj_csll.lucro_real,
        lucro_liquido=lucro_liquido,
        carga_tributaria=_razao_percentual(total, receita),
        margem_lucro=_razao_percentual(lucro_liquido, receita),
    )

    for campo, valor in resultado.to_dict().items():
        exigir_finito(campo, valor)

    logger.debug(
        "calculo concluido: receita=%.2f total_impostos=%.2f carga=%.2f%%",
        receita,
        total,
        resultado.carga_tributaria,
    )
    return resultado


@dataclass(frozen=True)
class ProjecaoMensal:
    mes: int
    ano: int
    receita: float
    icms: float
    pis: float
    cofins: float
    irpj: float
    csll: float
    iss: float
    total_impostos: float
    lucro_liquido: float
    resultado: TaxResult

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["resultado"] = self.resultado.to_dict()
        return payload


def config_mensal(config: TaxConfig, divisor: int = 12) -> TaxConfig:
    """Rateia os fluxos do periodo; aliquotas e limite do adicional ficam como estao."""
    fluxos = {campo: getattr(config, campo) / divisor for campo in CAMPOS_FLUXO}
    despesas = tuple(replace(d, valor=d.valor / divisor) for d in config.despesas)
    return replace(config, despesas=despesas, **fluxos)


def gerar_projecao_mensal(config: TaxConfig, ano: int) -> List[ProjecaoMensal]:
    """
    Doze fatias mensais (1/12 de cada fluxo) com o pipeline completo.
    A soma mensal pode divergir do calculo anual (limite do adicional e por periodo).
    """
    config.validar()
    resultado = calcular_impostos(config_mensal(config))
    projecao = [
        ProjecaoMensal(
            mes=mes,
            ano=ano,
            receita=resultado.receita_bruta_total,
            icms=resultado.icms_a_pagar,
            pis=resultado.pis_a_pagar,
            cofins=resultado.cofins_a_pagar,
            irpj=resultado.irpj_a_pagar,
            csll=resultado.csll_a_pagar,
            iss=resultado.iss_a_pagar,
            total_impostos=resultado.total_impostos,
            lucro_liquido=resultado.lucro_liquido,
            resultado=resultado,
        )
        for mes in range(1, 13)
    ]
    logger.debug("projecao mensal %s: total_impostos/mes=%.2f", ano, resultado.total_impostos)
    return projecao


def _agora_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def criar_cenario(
    empresa_id: str,
    nome: str,
    periodo: PeriodoCenario,
    config: TaxConfig,
    *,
    cenario_id: Optional[str] = None,
    status: str = STATUS_RASCUNHO,
    descricao: Optional[str] = None,
) -> Scenario:
    if not str(empresa_id or "").strip():
        raise InvalidInputError("empresa_id", empresa_id, "empresa obrigatoria")
    periodo.meses()
    agora = _agora_iso()
    return Scenario(
        id=cenario_id or uuid.uuid4().hex,
        empresa_id=empresa_id,
        nome=nome.strip() or "Cenario sem nome",
        periodo=periodo,
        config=config,
        resultado=calcular_impostos(config),
        status=exigir_opcao("status", status, STATUS_CENARIO),
        descricao=descricao,
        criado_em=agora,
        atualizado_em=agora,
    )


def recalcular_cenario(cenario: Scenario, config: Optional[TaxConfig] = None) -> Scenario:
    """Unico caminho que substitui o resultado de um cenario."""
    nova_config = config if config is not None else cenario.config
    resultado = calcular_impostos(nova_config)
    logger.info("cenario %s recalculado: total_impostos=%.2f", cenario.id, resultado.total_impostos)
    return replace(cenario, config=nova_config, resultado=resultado, atualizado_em=_agora_iso())


def alterar_status_cenario(cenario: Scenario, status: str) -> Scenario:
    novo = exigir_opcao("status", status, STATUS_CENARIO)
    return replace(cenario, status=novo, atualizado_em=_agora_iso())


def tax_config_padrao(
    receita_bruta: float,
    ruleset_id: str = DEFAULT_RULESET_ID,
    **valores: Any,
) -> TaxConfig:
    """Configuracao com as aliquotas e o limite do ruleset; demais campos via kwargs."""
    params = get_real_params(ruleset_id)
    payload: Dict[str, Any] = {
        campo: required_float(
            params,
            campo,
            ruleset_id=ruleset_id,
            arquivo="real_params.json",
            impacto="Nao e possivel montar configuracao padrao",
        )
        for campo in ALIQUOTAS_RULESET
    }
    payload["limite_adicional_irpj"] = required_float(
        params,
        "limite_adicional_irpj",
        ruleset_id=ruleset_id,
        arquivo="real_params.json",
        impacto="Nao e possivel calcular adicional de IRPJ",
    )
    payload["receita_bruta"] = receita_bruta
    payload.update(valores)
    if "despesas" in payload:
        payload["despesas"] = [d.to_dict() if hasattr(d, "to_dict") else d for d in payload["despesas"]]
    return TaxConfig.from_dict(payload)


def tax_config_from_dict(payload: Dict[str, Any]) -> TaxConfig:
    return TaxConfig.from_dict(payload)


def limite_adicional_por_periodicidade(periodicidade: str, ruleset_id: str = DEFAULT_RULESET_ID) -> float:
    """Tabela de referencia do ruleset (mensal/trimestral/semestral/anual)."""
    p = validar_periodicidade(periodicidade)
    params = get_real_params(ruleset_id)
    limites = params.get("limites_adicional_irpj")
    if not isinstance(limites, dict):
        raise ruleset_error(
            ruleset_id,
            "real_params.json",
            "limites_adicional_irpj",
            "Nao e possivel calcular adicional de IRPJ",
            "objeto invalido",
        )
    return required_float(
        limites,
        p,
        ruleset_id=ruleset_id,
        arquivo="real_params.json",
        impacto="Nao e possivel calcular adicional de IRPJ",
    )
