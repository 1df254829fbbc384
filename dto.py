from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, List, Optional, Tuple

from input_utils import (
    InvalidInputError,
    campos_ausentes,
    exigir_ano,
    exigir_mes,
    exigir_opcao,
    exigir_percentual,
    exigir_valor,
)
from regime_utils import canonicalize_regime

DESPESA_TIPO_CUSTO = "custo"
DESPESA_TIPO_DESPESA = "despesa"
DESPESA_TIPOS = (DESPESA_TIPO_CUSTO, DESPESA_TIPO_DESPESA)

CREDITO_COM = "com-credito"
CREDITO_SEM = "sem-credito"
CREDITO_OPCOES = (CREDITO_COM, CREDITO_SEM)

STATUS_RASCUNHO = "rascunho"
STATUS_APROVADO = "aprovado"
STATUS_ARQUIVADO = "arquivado"
STATUS_CENARIO = (STATUS_RASCUNHO, STATUS_APROVADO, STATUS_ARQUIVADO)

PERIODO_MENSAL = "mensal"
PERIODO_TRIMESTRAL = "trimestral"
PERIODO_SEMESTRAL = "semestral"
PERIODO_ANUAL = "anual"
TIPOS_PERIODO = (PERIODO_MENSAL, PERIODO_TRIMESTRAL, PERIODO_SEMESTRAL, PERIODO_ANUAL)

# Campos sem default: devem vir explicitamente de quem monta a configuracao.
CAMPOS_OBRIGATORIOS = (
    "receita_bruta",
    "icms_interno",
    "icms_interestadual",
    "pis_aliquota",
    "cofins_aliquota",
    "irpj_aliquota",
    "irpj_adicional_aliquota",
    "csll_aliquota",
    "iss_aliquota",
)

CAMPOS_PERCENTUAIS = (
    "icms_interno",
    "icms_interestadual",
    "pis_aliquota",
    "cofins_aliquota",
    "irpj_aliquota",
    "irpj_adicional_aliquota",
    "csll_aliquota",
    "iss_aliquota",
    "percentual_st",
    "percentual_monofasico",
    "vendas_internas",
    "vendas_interestaduais",
)

CAMPOS_CREDITO_PIS_COFINS = (
    "energia_eletrica",
    "alugueis",
    "arrendamento",
    "frete",
    "depreciacao",
    "combustiveis",
    "vale_transporte",
)

CAMPOS_CREDITO_ICMS = (
    "credito_estoque_inicial",
    "credito_ativo_imobilizado",
    "credito_energia_industria",
    "credito_st_entrada",
    "outros_creditos",
)

# Fluxos do periodo (rateados na projecao mensal). Aliquotas e limite ficam fora.
CAMPOS_FLUXO = (
    "receita_bruta",
    "compras_internas",
    "compras_interestaduais",
    "compras_uso",
    "cmv_total",
    *CAMPOS_CREDITO_PIS_COFINS,
    *CAMPOS_CREDITO_ICMS,
    "adicoes_lucro",
    "exclusoes_lucro",
)

CAMPOS_MONETARIOS = CAMPOS_FLUXO + ("limite_adicional_irpj",)


@dataclass(frozen=True)
class ExpenseItem:
    id: str
    descricao: str
    valor: float
    tipo: str = DESPESA_TIPO_DESPESA       # custo | despesa
    credito: str = CREDITO_SEM             # com-credito | sem-credito
    categoria: Optional[str] = None

    def validar(self) -> "ExpenseItem":
        if not str(self.id or "").strip():
            raise InvalidInputError("despesas.id", self.id, "id obrigatorio")
        exigir_valor(f"despesas[{self.id}].valor", self.valor)
        exigir_opcao(f"despesas[{self.id}].tipo", self.tipo, DESPESA_TIPOS)
        exigir_opcao(f"despesas[{self.id}].credito", self.credito, CREDITO_OPCOES)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ExpenseItem":
        faltando = campos_ausentes(payload, ("id", "descricao", "valor"))
        if faltando:
            raise InvalidInputError("despesas", payload, f"campos ausentes: {', '.join(faltando)}")
        item = cls(
            id=str(payload["id"]),
            descricao=str(payload["descricao"]),
            valor=exigir_valor(f"despesas[{payload['id']}].valor", payload["valor"]),
            tipo=exigir_opcao("despesas.tipo", payload.get("tipo", DESPESA_TIPO_DESPESA), DESPESA_TIPOS),
            credito=exigir_opcao("despesas.credito", payload.get("credito", CREDITO_SEM), CREDITO_OPCOES),
            categoria=str(payload["categoria"]) if payload.get("categoria") else None,
        )
        return item.validar()


@dataclass(frozen=True)
class TaxConfig:
    receita_bruta: float
    # Aliquotas (escala 0-100)
    icms_interno: float
    icms_interestadual: float
    pis_aliquota: float
    cofins_aliquota: float
    irpj_aliquota: float
    irpj_adicional_aliquota: float
    csll_aliquota: float
    iss_aliquota: float
    # Regimes especiais e distribuicao das vendas (percentuais)
    percentual_st: float = 0.0
    percentual_monofasico: float = 0.0
    vendas_internas: float = 100.0
    vendas_interestaduais: float = 0.0
    # Compras e custos
    compras_internas: float = 0.0
    compras_interestaduais: float = 0.0
    compras_uso: float = 0.0
    cmv_total: float = 0.0
    # Despesas com credito de PIS/COFINS
    energia_eletrica: float = 0.0
    alugueis: float = 0.0
    arrendamento: float = 0.0
    frete: float = 0.0
    depreciacao: float = 0.0
    combustiveis: float = 0.0
    vale_transporte: float = 0.0
    # Creditos adicionais de ICMS (valores absolutos)
    credito_estoque_inicial: float = 0.0
    credito_ativo_imobilizado: float = 0.0
    credito_energia_industria: float = 0.0
    credito_st_entrada: float = 0.0
    outros_creditos: float = 0.0
    # Ajustes do LALUR
    adicoes_lucro: float = 0.0
    exclusoes_lucro: float = 0.0
    limite_adicional_irpj: float = 240_000.0
    despesas: Tuple[ExpenseItem, ...] = ()

    def validar(self) -> "TaxConfig":
        for campo in CAMPOS_PERCENTUAIS:
            exigir_percentual(campo, getattr(self, campo))
        for campo in CAMPOS_MONETARIOS:
            exigir_valor(campo, getattr(self, campo))
        if self.vendas_internas + self.vendas_interestaduais > 100.0 + 1e-9:
            raise InvalidInputError(
                "vendas_internas+vendas_interestaduais",
                self.vendas_internas + self.vendas_interestaduais,
                "distribuicao das vendas acima de 100%",
            )
        ids = set()
        for item in self.despesas:
            if not isinstance(item, ExpenseItem):
                raise InvalidInputError("despesas", item, "item nao e ExpenseItem")
            item.validar()
            if item.id in ids:
                raise InvalidInputError("despesas.id", item.id, "id de despesa repetido")
            ids.add(item.id)
        return self

    def despesa(self, despesa_id: str) -> Optional[ExpenseItem]:
        return next((d for d in self.despesas if d.id == despesa_id), None)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["despesas"] = [d.to_dict() for d in self.despesas]
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "TaxConfig":
        """
        Borda para payloads soltos (JSON, formularios).
        Campos obrigatorios ausentes sao rejeitados; chaves desconhecidas sao ignoradas.
        """
        if not isinstance(payload, dict):
            raise InvalidInputError("config", payload, "payload deve ser objeto")
        faltando = campos_ausentes(payload, CAMPOS_OBRIGATORIOS)
        if faltando:
            raise InvalidInputError("config", sorted(payload), f"campos obrigatorios ausentes: {', '.join(faltando)}")

        conhecidos = {f.name for f in fields(cls)} - {"despesas"}
        valores: Dict[str, Any] = {}
        for campo in conhecidos:
            if campo not in payload or payload[campo] is None:
                continue
            if campo in CAMPOS_PERCENTUAIS:
                valores[campo] = exigir_percentual(campo, payload[campo])
            else:
                valores[campo] = exigir_valor(campo, payload[campo])

        despesas_raw = payload.get("despesas") or []
        if not isinstance(despesas_raw, list):
            raise InvalidInputError("despesas", despesas_raw, "lista esperada")
        despesas = tuple(ExpenseItem.from_dict(d) for d in despesas_raw)
        return cls(**valores, despesas=despesas).validar()


def adicionar_despesa(config: TaxConfig, item: ExpenseItem) -> TaxConfig:
    """Nova configuracao com o item anexado; ids sao unicos dentro da colecao."""
    item.validar()
    if config.despesa(item.id) is not None:
        raise InvalidInputError("despesas.id", item.id, "id de despesa repetido")
    return replace(config, despesas=config.despesas + (item,))


def atualizar_despesa(config: TaxConfig, item: ExpenseItem) -> TaxConfig:
    item.validar()
    if config.despesa(item.id) is None:
        raise InvalidInputError("despesas.id", item.id, "despesa inexistente")
    return replace(config, despesas=tuple(item if d.id == item.id else d for d in config.despesas))


def remover_despesa(config: TaxConfig, despesa_id: str) -> TaxConfig:
    if config.despesa(despesa_id) is None:
        raise InvalidInputError("despesas.id", despesa_id, "despesa inexistente")
    return replace(config, despesas=tuple(d for d in config.despesas if d.id != despesa_id))


@dataclass(frozen=True)
class TaxResult:
    # Impostos a pagar (sempre >= 0)
    icms_a_pagar: float
    pis_a_pagar: float
    cofins_a_pagar: float
    irpj_a_pagar: float
    csll_a_pagar: float
    iss_a_pagar: float
    # Saldos credores para a proxima apuracao
    credito_icms_proxima_apuracao: float
    credito_pis_proxima_apuracao: float
    credito_cofins_proxima_apuracao: float
    # Debitos e creditos
    debito_icms: float
    credito_icms: float
    debito_pis: float
    credito_pis: float
    debito_cofins: float
    credito_cofins: float
    # Bases de calculo
    base_calculo_icms: float
    base_calculo_pis: float
    base_calculo_cofins: float
    base_calculo_irpj: float
    base_calculo_csll: float
    # Detalhe do IRPJ
    irpj_base: float
    irpj_adicional: float
    base_adicional_irpj: float
    limite_adicional_irpj: float
    # Aliquotas aplicadas (escala 0-100)
    aliquota_icms: float
    aliquota_pis: float
    aliquota_cofins: float
    aliquota_irpj: float
    aliquota_irpj_adicional: float
    aliquota_csll: float
    aliquota_iss: float
    # Totalizadores
    total_impostos_federais: float
    total_impostos_estaduais: float
    total_impostos_municipais: float
    total_impostos: float
    # Resultado
    receita_bruta_total: float
    cmv: float
    despesas_operacionais: float
    lucro_contabil: float
    lucro_real: float
    lucro_liquido: float
    carga_tributaria: float
    margem_lucro: float

    def impostos_por_tipo(self) -> Dict[str, float]:
        return {
            "icms": self.icms_a_pagar,
            "pis": self.pis_a_pagar,
            "cofins": self.cofins_a_pagar,
            "irpj": self.irpj_a_pagar,
            "csll": self.csll_a_pagar,
            "iss": self.iss_a_pagar,
        }

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "TaxResult":
        valores: Dict[str, float] = {}
        for f in fields(cls):
            if f.name not in payload:
                raise InvalidInputError("resultado", f.name, "campo ausente no resultado persistido")
            valor = payload[f.name]
            if isinstance(valor, bool) or not isinstance(valor, (int, float)):
                raise InvalidInputError(f"resultado.{f.name}", valor, "valor nao numerico")
            valores[f.name] = float(valor)
        return cls(**valores)


@dataclass(frozen=True)
class PeriodoCenario:
    tipo: str
    ano: int
    mes: Optional[int] = None        # 1-12 (mensal)
    trimestre: Optional[int] = None  # 1-4 (trimestral)
    semestre: Optional[int] = None   # 1-2 (semestral)

    def meses(self) -> List[int]:
        tipo = exigir_opcao("periodo.tipo", self.tipo, TIPOS_PERIODO)
        if tipo == PERIODO_MENSAL:
            return [exigir_mes("periodo.mes", self.mes)]
        if tipo == PERIODO_TRIMESTRAL:
            if self.trimestre not in (1, 2, 3, 4):
                raise InvalidInputError("periodo.trimestre", self.trimestre, "trimestre fora de 1-4")
            inicio = (self.trimestre - 1) * 3 + 1
            return list(range(inicio, inicio + 3))
        if tipo == PERIODO_SEMESTRAL:
            if self.semestre not in (1, 2):
                raise InvalidInputError("periodo.semestre", self.semestre, "semestre fora de 1-2")
            inicio = (self.semestre - 1) * 6 + 1
            return list(range(inicio, inicio + 6))
        return list(range(1, 13))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PeriodoCenario":
        periodo = cls(
            tipo=exigir_opcao("periodo.tipo", payload.get("tipo"), TIPOS_PERIODO),
            ano=int(payload["ano"]),
            mes=payload.get("mes"),
            trimestre=payload.get("trimestre"),
            semestre=payload.get("semestre"),
        )
        periodo.meses()
        return periodo


@dataclass(frozen=True)
class Scenario:
    id: str
    empresa_id: str
    nome: str
    periodo: PeriodoCenario
    config: TaxConfig
    resultado: TaxResult
    status: str = STATUS_RASCUNHO
    descricao: Optional[str] = None
    criado_em: str = ""
    atualizado_em: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "empresa_id": self.empresa_id,
            "nome": self.nome,
            "periodo": self.periodo.to_dict(),
            "config": self.config.to_dict(),
            "resultado": self.resultado.to_dict(),
            "status": self.status,
            "descricao": self.descricao,
            "criado_em": self.criado_em,
            "atualizado_em": self.atualizado_em,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Scenario":
        return cls(
            id=str(payload["id"]),
            empresa_id=str(payload["empresa_id"]),
            nome=str(payload.get("nome", "")),
            periodo=PeriodoCenario.from_dict(payload["periodo"]),
            config=TaxConfig.from_dict(payload["config"]),
            resultado=TaxResult.from_dict(payload["resultado"]),
            status=exigir_opcao("status", payload.get("status", STATUS_RASCUNHO), STATUS_CENARIO),
            descricao=payload.get("descricao"),
            criado_em=str(payload.get("criado_em", "")),
            atualizado_em=str(payload.get("atualizado_em", "")),
        )


CAMPOS_IMPOSTOS_MANUAIS = ("icms", "pis", "cofins", "irpj", "csll", "iss", "cpp", "outros")


@dataclass(frozen=True)
class ManualMonthlyEntry:
    id: str
    empresa_id: str
    mes: int
    ano: int
    regime: str
    receita: float
    icms: float = 0.0
    pis: float = 0.0
    cofins: float = 0.0
    irpj: float = 0.0
    csll: float = 0.0
    iss: float = 0.0
    cpp: float = 0.0
    outros: float = 0.0
    observacoes: Optional[str] = None

    @property
    def chave_natural(self) -> Tuple[str, int, int, str]:
        return (self.empresa_id, self.mes, self.ano, canonicalize_regime(self.regime))

    @property
    def total_impostos(self) -> float:
        return sum(getattr(self, campo) for campo in CAMPOS_IMPOSTOS_MANUAIS)

    @property
    def lucro_liquido(self) -> float:
        return self.receita - self.total_impostos

    def impostos_por_tipo(self) -> Dict[str, float]:
        return {campo: getattr(self, campo) for campo in CAMPOS_IMPOSTOS_MANUAIS}

    def validar(self) -> "ManualMonthlyEntry":
        if not str(self.empresa_id or "").strip():
            raise InvalidInputError("empresa_id", self.empresa_id, "empresa obrigatoria")
        exigir_mes("mes", self.mes)
        exigir_ano("ano", self.ano)
        canonicalize_regime(self.regime)
        exigir_valor("receita", self.receita)
        for campo in CAMPOS_IMPOSTOS_MANUAIS:
            exigir_valor(campo, getattr(self, campo))
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ManualMonthlyEntry":
        faltando = campos_ausentes(payload, ("id", "empresa_id", "mes", "ano", "regime", "receita"))
        if faltando:
            raise InvalidInputError("lancamento", payload, f"campos obrigatorios ausentes: {', '.join(faltando)}")
        impostos = {campo: exigir_valor(campo, payload.get(campo, 0.0)) for campo in CAMPOS_IMPOSTOS_MANUAIS}
        ano = payload["ano"]
        if isinstance(ano, str) and ano.strip().isdigit():
            ano = int(ano)
        entry = cls(
            id=str(payload["id"]),
            empresa_id=str(payload["empresa_id"]),
            mes=exigir_mes("mes", payload["mes"]),
            ano=exigir_ano("ano", ano),
            regime=canonicalize_regime(payload["regime"]),
            receita=exigir_valor("receita", payload["receita"]),
            observacoes=payload.get("observacoes"),
            **impostos,
        )
        return entry.validar()
