import re
import uuid
from datetime import datetime
from typing import Any, Dict, List

import pandas as pd
import streamlit as st

from demo_config import DEMO_EMPRESA_ID, demo_lancamentos, demo_tax_config, resolve_demo_mode, resolve_storage_targets
from dre import montar_dre
from dto import (
    CAMPOS_CREDITO_ICMS,
    CAMPOS_CREDITO_PIS_COFINS,
    CAMPOS_IMPOSTOS_MANUAIS,
    CREDITO_OPCOES,
    DESPESA_TIPOS,
    STATUS_ARQUIVADO,
    STATUS_CENARIO,
    TIPOS_PERIODO,
    ExpenseItem,
    ManualMonthlyEntry,
    PeriodoCenario,
    TaxConfig,
)
from file_exporter import (
    dataframe_para_csv,
    metricas_dataframe,
    projecao_dataframe,
    salvar_relatorio_txt,
    variacoes_dataframe,
)
from formatters import MESES_ABREV, formatar_percentual, formatar_reais
from history_store import (
    DuplicateEntryError,
    fontes_para_comparacao,
    listar_cenarios,
    listar_lancamentos,
    remover_lancamento,
    salvar_cenario,
    salvar_lancamento,
)
from input_utils import InvalidInputError
from logging_config import configure_logging
from pdf_exporter import salvar_relatorio_pdf
from regime_comparator import comparar_regimes
from regime_utils import (
    REGIME_CODE_PRESUMIDO,
    REGIME_CODE_REAL,
    REGIME_CODE_SIMPLES,
    REGIMES_VALIDOS,
    regime_display,
)
from report_builder import montar_relatorio_cenario, montar_relatorio_comparativo
from report_formatters import render_memoria_calculo
from tax_engine import (
    alterar_status_cenario,
    calcular_impostos,
    criar_cenario,
    gerar_projecao_mensal,
    limite_adicional_por_periodicidade,
    tax_config_padrao,
)

_ROTULOS_CREDITO = {
    "energia_eletrica": "Energia elétrica",
    "alugueis": "Aluguéis",
    "arrendamento": "Arrendamento mercantil",
    "frete": "Frete",
    "depreciacao": "Depreciação",
    "combustiveis": "Combustíveis",
    "vale_transporte": "Vale-transporte",
    "credito_estoque_inicial": "Estoque inicial",
    "credito_ativo_imobilizado": "Ativo imobilizado",
    "credito_energia_industria": "Energia (indústria)",
    "credito_st_entrada": "ST na entrada",
    "outros_creditos": "Outros créditos",
}


def nome_arquivo_seguro(nome_empresa: str, prefixo: str = "relatorio") -> str:
    """Gera base de nome de arquivo sem caracteres especiais."""
    nome_limpo = re.sub(r"[^a-zA-Z0-9_ -]", "", (nome_empresa or ""))
    nome_limpo = nome_limpo.strip().replace(" ", "_")
    return f"{prefixo}_{nome_limpo or 'empresa'}"


def _numero(rotulo: str, valor: float, key: str, **kwargs: Any) -> float:
    return float(st.number_input(rotulo, min_value=0.0, value=float(valor), key=key, format="%.2f", **kwargs))


def _form_config(base: TaxConfig) -> Dict[str, Any]:
    """Campos da configuracao anual; devolve payload para TaxConfig.from_dict."""
    payload: Dict[str, Any] = {}
    st.markdown("**Receita e distribuição**")
    c1, c2, c3 = st.columns(3)
    with c1:
        payload["receita_bruta"] = _numero("Receita bruta (R$)", base.receita_bruta, "cfg_receita", step=10000.0)
        payload["percentual_st"] = _numero("% com ST", base.percentual_st, "cfg_st", max_value=100.0)
    with c2:
        payload["vendas_internas"] = _numero("% vendas internas", base.vendas_internas, "cfg_vint", max_value=100.0)
        payload["vendas_interestaduais"] = _numero(
            "% vendas interestaduais", base.vendas_interestaduais, "cfg_vinter", max_value=100.0
        )
    with c3:
        payload["percentual_monofasico"] = _numero(
            "% monofásico (PIS/COFINS)", base.percentual_monofasico, "cfg_mono", max_value=100.0
        )
        payload["cmv_total"] = _numero("CMV (R$)", base.cmv_total, "cfg_cmv", step=10000.0)

    st.markdown("**Alíquotas (%)**")
    cols = st.columns(4)
    for idx, campo in enumerate(
        (
            "icms_interno",
            "icms_interestadual",
            "pis_aliquota",
            "cofins_aliquota",
            "irpj_aliquota",
            "irpj_adicional_aliquota",
            "csll_aliquota",
            "iss_aliquota",
        )
    ):
        with cols[idx % 4]:
            payload[campo] = _numero(campo, getattr(base, campo), f"cfg_{campo}", max_value=100.0)
    payload["limite_adicional_irpj"] = _numero(
        "Limite do adicional de IRPJ (R$)", base.limite_adicional_irpj, "cfg_limite", step=1000.0
    )

    st.markdown("**Compras**")
    c1, c2, c3 = st.columns(3)
    with c1:
        payload["compras_internas"] = _numero("Compras internas (R$)", base.compras_internas, "cfg_ci", step=10000.0)
    with c2:
        payload["compras_interestaduais"] = _numero(
            "Compras interestaduais (R$)", base.compras_interestaduais, "cfg_cie", step=10000.0
        )
    with c3:
        payload["compras_uso"] = _numero("Compras uso/consumo (R$)", base.compras_uso, "cfg_cu", step=1000.0)

    with st.expander("Despesas com crédito de PIS/COFINS e créditos de ICMS"):
        cols = st.columns(3)
        for idx, campo in enumerate(CAMPOS_CREDITO_PIS_COFINS + CAMPOS_CREDITO_ICMS):
            with cols[idx % 3]:
                payload[campo] = _numero(_ROTULOS_CREDITO[campo], getattr(base, campo), f"cfg_{campo}", step=1000.0)

    st.markdown("**Ajustes do LALUR**")
    c1, c2 = st.columns(2)
    with c1:
        payload["adicoes_lucro"] = _numero("Adições (R$)", base.adicoes_lucro, "cfg_adicoes", step=1000.0)
    with c2:
        payload["exclusoes_lucro"] = _numero("Exclusões (R$)", base.exclusoes_lucro, "cfg_exclusoes", step=1000.0)
    return payload


def _form_despesas(despesas: List[ExpenseItem]) -> List[Dict[str, Any]]:
    st.markdown("**Despesas e custos**")
    colunas = ["id", "descricao", "valor", "tipo", "credito", "categoria"]
    editado = st.data_editor(
        pd.DataFrame([d.to_dict() for d in despesas], columns=colunas),
        num_rows="dynamic",
        key="cfg_despesas",
        column_config={
            "tipo": st.column_config.SelectboxColumn("tipo", options=list(DESPESA_TIPOS)),
            "credito": st.column_config.SelectboxColumn("credito", options=list(CREDITO_OPCOES)),
        },
        width="stretch",
    )
    itens: List[Dict[str, Any]] = []
    for linha in editado.to_dict("records"):
        if pd.isna(linha.get("descricao")) or pd.isna(linha.get("valor")):
            continue
        item = {k: v for k, v in linha.items() if not pd.isna(v)}
        item["id"] = item.get("id") or uuid.uuid4().hex[:8]
        item["valor"] = float(item["valor"])
        itens.append(item)
    return itens


def _carregar_config(config: TaxConfig) -> None:
    # widgets com key guardam o proprio valor; limpar para refletir a nova configuracao
    for chave in [k for k in st.session_state if str(k).startswith("cfg_")]:
        del st.session_state[chave]
    st.session_state["config"] = config


def _renderizar_resultado(resultado) -> None:
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Total de impostos", formatar_reais(resultado.total_impostos))
    m2.metric("Carga tributária", formatar_percentual(resultado.carga_tributaria))
    m3.metric("Lucro líquido", formatar_reais(resultado.lucro_liquido))
    m4.metric("Margem líquida", formatar_percentual(resultado.margem_lucro))
    st.dataframe(
        [{"Imposto": k.upper(), "Valor (R$)": round(v, 2)} for k, v in resultado.impostos_por_tipo().items()],
        hide_index=True,
        width="stretch",
    )


configure_logging()
st.set_page_config(page_title="Lucro Real Engine", layout="wide")
st.title("Lucro Real Engine")
st.caption("Apuração do Lucro Real e comparativo com Presumido/Simples.")

if "config" not in st.session_state:
    st.session_state["config"] = tax_config_padrao(0.0)
if "demo_toggle" not in st.session_state:
    st.session_state["demo_toggle"] = False

with st.sidebar:
    st.header("Configuracoes")
    demo_toggle = st.toggle("Modo DEMO", key="demo_toggle")
    demo_mode = resolve_demo_mode(toggle_enabled=demo_toggle)
    storage_targets = resolve_storage_targets(demo_mode)
    pasta_dados = storage_targets["data_pasta"]

    empresa_id = st.text_input("Empresa (id)", value=DEMO_EMPRESA_ID if demo_mode else "").strip()
    ano = int(st.number_input("Ano", min_value=2000, max_value=2100, value=datetime.now().year, step=1))

    if demo_mode:
        st.caption("DEMO ativa: dados e exportacoes sao isolados em pastas *_demo.")
        if st.button("Carregar Exemplo - Comércio", use_container_width=True):
            _carregar_config(demo_tax_config("comercio"))
            st.rerun()
        if st.button("Carregar Exemplo - Serviços", use_container_width=True):
            _carregar_config(demo_tax_config("servicos"))
            st.rerun()
        if st.button("Gerar lançamentos DEMO (Presumido/Simples)", use_container_width=True):
            for entry in demo_lancamentos(ano, list(range(1, 13))):
                salvar_lancamento(entry, substituir=True, pasta=pasta_dados)
            st.success("Lançamentos DEMO gravados.")

if demo_mode:
    st.warning("DEMO: não insira dados sensíveis.")

aba_cenario, aba_manual, aba_comparativo = st.tabs(["Cenário Lucro Real", "Lançamentos manuais", "Comparativo"])

with aba_cenario:
    config_atual: TaxConfig = st.session_state["config"]
    payload = _form_config(config_atual)
    payload["despesas"] = _form_despesas(list(config_atual.despesas))

    try:
        config = TaxConfig.from_dict(payload)
    except InvalidInputError as exc:
        st.error(f"Configuração inválida: {exc.campo} ({exc.detalhe})")
        st.stop()
    st.session_state["config"] = config

    resultado = calcular_impostos(config)
    st.subheader("Resultado (anual)")
    _renderizar_resultado(resultado)

    with st.expander("Memória de cálculo"):
        st.text(render_memoria_calculo(config))
    with st.expander("DRE"):
        st.dataframe([montar_dre(resultado).to_dict()], hide_index=True, width="stretch")

    projecao = gerar_projecao_mensal(config, ano)
    st.subheader("Projeção mensal")
    df_projecao = projecao_dataframe(projecao)
    st.dataframe(df_projecao, hide_index=True, width="stretch")
    st.download_button(
        "Baixar projeção (CSV)",
        data=dataframe_para_csv(df_projecao),
        file_name=f"projecao_{ano}.csv",
        mime="text/csv",
    )

    st.subheader("Salvar cenário")
    c1, c2, c3 = st.columns(3)
    with c1:
        nome_cenario = st.text_input("Nome do cenário", value="Cenário anual")
        status = st.selectbox("Status", STATUS_CENARIO)
    with c2:
        tipo_periodo = st.selectbox("Período", TIPOS_PERIODO, index=TIPOS_PERIODO.index("anual"))
        st.caption(
            f"Limite de referência do adicional ({tipo_periodo}): "
            f"{formatar_reais(limite_adicional_por_periodicidade(tipo_periodo))}"
        )
    with c3:
        mes = trimestre = semestre = None
        if tipo_periodo == "mensal":
            mes = st.selectbox("Mês", list(range(1, 13)), format_func=lambda m: MESES_ABREV[m - 1])
        elif tipo_periodo == "trimestral":
            trimestre = st.selectbox("Trimestre", [1, 2, 3, 4])
        elif tipo_periodo == "semestral":
            semestre = st.selectbox("Semestre", [1, 2])

    if st.button("Salvar cenário", use_container_width=True):
        if not empresa_id:
            st.error("Informe a empresa na barra lateral.")
            st.stop()
        periodo = PeriodoCenario(tipo_periodo, ano, mes=mes, trimestre=trimestre, semestre=semestre)
        cenario = criar_cenario(empresa_id, nome_cenario, periodo, config, status=status)
        caminho = salvar_cenario(cenario, pasta=pasta_dados)
        st.success(f"Cenário salvo: {caminho}")

        relatorio = montar_relatorio_cenario(cenario, projecao=projecao)
        base = nome_arquivo_seguro(empresa_id, prefixo="cenario")
        st.info(f"TXT salvo: {salvar_relatorio_txt(relatorio, nome_base=base, pasta=storage_targets['outputs_txt_pasta'])}")
        st.info(f"PDF salvo: {salvar_relatorio_pdf(relatorio, nome_base=base, pasta=storage_targets['outputs_pdf_pasta'])}")

    if empresa_id:
        salvos = listar_cenarios(empresa_id=empresa_id, ano=ano, pasta=pasta_dados)
        if salvos:
            st.caption("Cenários salvos")
            st.dataframe(
                [
                    {
                        "Nome": c.nome,
                        "Período": c.periodo.tipo,
                        "Status": c.status,
                        "Impostos (R$)": round(c.resultado.total_impostos, 2),
                        "Atualizado em": c.atualizado_em,
                    }
                    for c in salvos
                ],
                hide_index=True,
                width="stretch",
            )
            ativos = {c.id: c for c in salvos if c.status != STATUS_ARQUIVADO}
            arquivar = st.selectbox(
                "Arquivar cenário (sai do comparativo)",
                [""] + list(ativos),
                format_func=lambda cid: ativos[cid].nome if cid else "",
            )
            if arquivar and st.button("Arquivar", use_container_width=True):
                salvar_cenario(alterar_status_cenario(ativos[arquivar], STATUS_ARQUIVADO), pasta=pasta_dados)
                st.rerun()

with aba_manual:
    st.subheader("Lançamento mensal (Presumido / Simples)")
    regimes_manuais = [REGIME_CODE_PRESUMIDO, REGIME_CODE_SIMPLES, REGIME_CODE_REAL]
    c1, c2, c3 = st.columns(3)
    with c1:
        regime_manual = st.selectbox("Regime", regimes_manuais, format_func=regime_display)
    with c2:
        mes_manual = st.selectbox("Mês", list(range(1, 13)), format_func=lambda m: MESES_ABREV[m - 1], key="mes_manual")
    with c3:
        receita_manual = st.number_input("Receita (R$)", min_value=0.0, value=0.0, step=1000.0, format="%.2f")

    valores_manuais: Dict[str, float] = {}
    cols = st.columns(4)
    for idx, campo in enumerate(CAMPOS_IMPOSTOS_MANUAIS):
        with cols[idx % 4]:
            valores_manuais[campo] = float(
                st.number_input(campo.upper(), min_value=0.0, value=0.0, step=100.0, format="%.2f", key=f"man_{campo}")
            )
    observacoes = st.text_input("Observações", value="")
    substituir = st.checkbox("Substituir lançamento existente do mesmo mês", value=False)

    if st.button("Salvar lançamento", use_container_width=True):
        if not empresa_id:
            st.error("Informe a empresa na barra lateral.")
            st.stop()
        entry = ManualMonthlyEntry(
            id=uuid.uuid4().hex,
            empresa_id=empresa_id,
            mes=mes_manual,
            ano=ano,
            regime=regime_manual,
            receita=float(receita_manual),
            observacoes=observacoes or None,
            **valores_manuais,
        )
        try:
            salvar_lancamento(entry, substituir=substituir, pasta=pasta_dados)
            st.success("Lançamento salvo.")
        except DuplicateEntryError:
            st.error("Já existe lançamento para este mês e regime. Marque 'Substituir' para trocar.")
        except InvalidInputError as exc:
            st.error(f"Lançamento inválido: {exc.campo} ({exc.detalhe})")

    if empresa_id:
        lancamentos = listar_lancamentos(empresa_id=empresa_id, ano=ano, pasta=pasta_dados)
        if lancamentos:
            st.dataframe(
                [
                    {
                        "Mês": MESES_ABREV[l.mes - 1],
                        "Regime": regime_display(l.regime),
                        "Receita (R$)": round(l.receita, 2),
                        "Impostos (R$)": round(l.total_impostos, 2),
                        "Lucro (R$)": round(l.lucro_liquido, 2),
                        "id": l.id,
                    }
                    for l in lancamentos
                ],
                hide_index=True,
                width="stretch",
            )
            remover = st.selectbox("Remover lançamento", [""] + [l.id for l in lancamentos])
            if remover and st.button("Remover", use_container_width=True):
                remover_lancamento(remover, pasta=pasta_dados)
                st.rerun()

with aba_comparativo:
    st.subheader("Comparativo entre regimes")
    regimes_sel = st.multiselect(
        "Regimes (o primeiro é a base)",
        list(REGIMES_VALIDOS),
        default=[REGIME_CODE_REAL, REGIME_CODE_PRESUMIDO],
        format_func=regime_display,
    )
    meses_sel = st.multiselect(
        "Meses",
        list(range(1, 13)),
        default=list(range(1, 13)),
        format_func=lambda m: MESES_ABREV[m - 1],
    )

    if st.button("Gerar comparativo", use_container_width=True):
        if not empresa_id:
            st.error("Informe a empresa na barra lateral.")
            st.stop()
        fontes = fontes_para_comparacao(empresa_id, ano, regimes_sel, pasta=pasta_dados)
        st.session_state["analise"] = comparar_regimes(empresa_id, ano, meses_sel, fontes)

    analise = st.session_state.get("analise")
    if analise is None:
        st.info("Selecione regimes e meses e gere o comparativo.")
    elif not analise.has_data:
        st.warning("Dados insuficientes: são necessários ao menos dois regimes com dados nos meses selecionados.")
    else:
        st.metric("Cobertura", formatar_percentual(analise.percentual_cobertura, casas=1))
        if analise.regimes_incompletos:
            st.caption("Regimes incompletos: " + ", ".join(regime_display(r) for r in analise.regimes_incompletos))

        for insight in analise.insights:
            if insight.tipo == "success":
                st.success(insight.mensagem)
            elif insight.tipo == "alert":
                st.error(insight.mensagem)
            else:
                st.warning(insight.mensagem)

        df_metricas = metricas_dataframe(analise)
        st.dataframe(df_metricas, hide_index=True, width="stretch")
        if not df_metricas.empty:
            st.bar_chart(df_metricas.set_index("regime")[["total_impostos", "lucro_liquido"]])

        df_variacoes = variacoes_dataframe(analise)
        st.dataframe(df_variacoes, hide_index=True, width="stretch")

        if analise.vencedor is not None:
            st.info(analise.vencedor.justificativa)

        relatorio_comp = montar_relatorio_comparativo(analise)
        st.text_area("Relatório", value=relatorio_comp, height=320)

        base = nome_arquivo_seguro(analise.empresa_id, prefixo="comparativo")
        b1, b2, b3 = st.columns(3)
        with b1:
            st.download_button(
                "Baixar variações (CSV)",
                data=dataframe_para_csv(df_variacoes),
                file_name=f"{base}.csv",
                mime="text/csv",
            )
        with b2:
            if st.button("Salvar TXT"):
                st.info(f"TXT salvo: {salvar_relatorio_txt(relatorio_comp, nome_base=base, pasta=storage_targets['outputs_txt_pasta'])}")
        with b3:
            if st.button("Salvar PDF"):
                st.info(f"PDF salvo: {salvar_relatorio_pdf(relatorio_comp, nome_base=base, pasta=storage_targets['outputs_pdf_pasta'])}")
