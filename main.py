import json
import re
import uuid
from datetime import datetime
from typing import List, Optional

from demo_config import resolve_demo_mode, resolve_storage_targets
from dto import ManualMonthlyEntry, PeriodoCenario
from file_exporter import projecao_dataframe, salvar_csv, salvar_relatorio_txt
from formatters import formatar_percentual, formatar_reais
from history_store import DuplicateEntryError, fontes_para_comparacao, salvar_cenario, salvar_lancamento
from input_utils import InvalidInputError, validar_competencia, validar_periodicidade
from logging_config import configure_logging
from outputs_manager import ler_relatorio, listar_relatorios
from pdf_exporter import salvar_relatorio_pdf
from regime_comparator import comparar_regimes
from regime_utils import REGIMES_VALIDOS, canonicalize_regime
from report_builder import montar_relatorio_cenario, montar_relatorio_comparativo
from tax_engine import criar_cenario, gerar_projecao_mensal, limite_adicional_por_periodicidade, tax_config_from_dict


def nome_arquivo_seguro(nome: str, prefixo: str = "relatorio") -> str:
    nome_limpo = re.sub(r"[^a-zA-Z0-9_ -]", "", nome)
    nome_limpo = nome_limpo.strip().replace(" ", "_")
    return f"{prefixo}_{nome_limpo or 'empresa'}"


def _ler_float(prompt: str, obrigatorio: bool = False) -> float:
    while True:
        raw = input(prompt).strip().replace(",", ".")
        if raw == "":
            if obrigatorio:
                print("Campo obrigatorio.")
                continue
            return 0.0
        try:
            valor = float(raw)
        except ValueError:
            print("Valor invalido. Tente novamente.")
            continue
        if valor < 0:
            print("Valor nao pode ser negativo.")
            continue
        return valor


def _periodo_de_competencia(periodicidade: str, competencia: str) -> PeriodoCenario:
    ano = int(competencia[:4])
    if periodicidade == "mensal":
        return PeriodoCenario("mensal", ano, mes=int(competencia[5:7]))
    if periodicidade == "trimestral":
        return PeriodoCenario("trimestral", ano, trimestre=int(competencia[-1]))
    if periodicidade == "semestral":
        return PeriodoCenario("semestral", ano, semestre=int(competencia[-1]))
    return PeriodoCenario("anual", ano)


def ler_periodo() -> PeriodoCenario:
    print("\nPeriodicidade do cenario:")
    opcoes = {"1": "mensal", "2": "trimestral", "3": "semestral", "4": "anual"}
    for chave, nome in opcoes.items():
        print(f"{chave}) {nome}")

    while True:
        op = input("Opcao: ").strip()
        if op in opcoes:
            periodicidade = validar_periodicidade(opcoes[op])
            break
        print("Opcao invalida. Tente novamente.")

    while True:
        ok, resultado = validar_competencia(periodicidade, input("Competencia: "))
        if ok:
            return _periodo_de_competencia(periodicidade, resultado)
        print(resultado)


def calcular_cenario(storage: dict) -> None:
    caminho = input("Arquivo JSON da configuracao anual: ").strip()
    try:
        with open(caminho, "r", encoding="utf-8-sig") as f:
            config = tax_config_from_dict(json.load(f))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Nao foi possivel ler o arquivo: {exc}")
        return
    except InvalidInputError as exc:
        print(f"Configuracao invalida: {exc}")
        return

    empresa_id = input("Empresa (id): ").strip()
    nome = input("Nome do cenario: ").strip()
    periodo = ler_periodo()
    referencia = limite_adicional_por_periodicidade(periodo.tipo)
    if abs(referencia - config.limite_adicional_irpj) > 0.005:
        print(
            f"Aviso: limite do adicional configurado ({formatar_reais(config.limite_adicional_irpj)}) "
            f"difere da referencia {periodo.tipo} ({formatar_reais(referencia)})."
        )
    try:
        cenario = criar_cenario(empresa_id, nome, periodo, config)
    except InvalidInputError as exc:
        print(f"Cenario invalido: {exc}")
        return
    projecao = gerar_projecao_mensal(config, periodo.ano)

    r = cenario.resultado
    print(f"\nTotal de impostos: {formatar_reais(r.total_impostos)}")
    print(f"Carga tributaria: {formatar_percentual(r.carga_tributaria)}")
    print(f"Lucro liquido: {formatar_reais(r.lucro_liquido)}")

    if input("Salvar cenario? (s/N): ").strip().lower() == "s":
        print(f"Cenario salvo: {salvar_cenario(cenario, pasta=storage['data_pasta'])}")

    relatorio = montar_relatorio_cenario(cenario, projecao=projecao)
    base = nome_arquivo_seguro(empresa_id, prefixo="cenario")
    print(f"TXT salvo: {salvar_relatorio_txt(relatorio, nome_base=base, pasta=storage['outputs_txt_pasta'])}")
    print(f"CSV salvo: {salvar_csv(projecao_dataframe(projecao), nome_base=base, pasta=storage['outputs_csv_pasta'])}")
    if input("Gerar PDF? (s/N): ").strip().lower() == "s":
        print(f"PDF salvo: {salvar_relatorio_pdf(relatorio, nome_base=base, pasta=storage['outputs_pdf_pasta'])}")


def registrar_lancamento(storage: dict) -> None:
    try:
        entry = ManualMonthlyEntry(
            id=uuid.uuid4().hex,
            empresa_id=input("Empresa (id): ").strip(),
            mes=int(input("Mes (1-12): ").strip()),
            ano=int(input("Ano: ").strip()),
            regime=canonicalize_regime(input(f"Regime ({'|'.join(REGIMES_VALIDOS)}): ")),
            receita=_ler_float("Receita: ", obrigatorio=True),
            icms=_ler_float("ICMS: "),
            pis=_ler_float("PIS: "),
            cofins=_ler_float("COFINS: "),
            irpj=_ler_float("IRPJ: "),
            csll=_ler_float("CSLL: "),
            iss=_ler_float("ISS: "),
            cpp=_ler_float("CPP: "),
            outros=_ler_float("Outros: "),
        )
        salvar_lancamento(entry, pasta=storage["data_pasta"])
        print("Lancamento salvo.")
    except DuplicateEntryError:
        print("Ja existe lancamento para esse mes/regime.")
    except ValueError as exc:
        print(f"Lancamento invalido: {exc}")


def gerar_comparativo(storage: dict) -> None:
    empresa_id = input("Empresa (id): ").strip()
    try:
        ano = int(input("Ano: ").strip())
    except ValueError:
        print("Ano invalido.")
        return
    regimes = [r for r in input("Regimes separados por virgula (o primeiro e a base): ").split(",") if r.strip()]
    meses_raw = input("Meses (ENTER para 1-12): ").strip()
    try:
        meses: List[int] = [int(m) for m in meses_raw.split(",")] if meses_raw else list(range(1, 13))
        fontes = fontes_para_comparacao(empresa_id, ano, regimes, pasta=storage["data_pasta"])
        analise = comparar_regimes(empresa_id, ano, meses, fontes)
    except ValueError as exc:
        print(f"Entrada invalida: {exc}")
        return

    relatorio = montar_relatorio_comparativo(analise)
    print("\n" + relatorio)
    base = nome_arquivo_seguro(empresa_id, prefixo="comparativo")
    print(f"TXT salvo: {salvar_relatorio_txt(relatorio, nome_base=base, pasta=storage['outputs_txt_pasta'])}")


def ver_relatorios(storage: dict) -> None:
    pasta = storage["outputs_txt_pasta"]
    arquivos = listar_relatorios(pasta)
    if not arquivos:
        print("Nenhum relatorio encontrado.")
        return
    for idx, nome in enumerate(arquivos[:20], start=1):
        print(f"{idx}) {nome}")
    op = input("Numero do relatorio (ENTER para voltar): ").strip()
    if op.isdigit() and 1 <= int(op) <= len(arquivos[:20]):
        conteudo: Optional[str] = ler_relatorio(arquivos[int(op) - 1], pasta)
        print(conteudo or "Arquivo nao encontrado.")


def main() -> None:
    configure_logging()
    storage = resolve_storage_targets(resolve_demo_mode())
    acoes = {
        "1": ("Calcular cenario Lucro Real", calcular_cenario),
        "2": ("Registrar lancamento manual", registrar_lancamento),
        "3": ("Comparar regimes", gerar_comparativo),
        "4": ("Ver relatorios salvos", ver_relatorios),
    }
    print(f"=== LUCRO REAL ENGINE ({datetime.now():%d/%m/%Y}) ===")
    while True:
        print()
        for chave, (rotulo, _) in acoes.items():
            print(f"{chave}) {rotulo}")
        print("0) Sair")
        op = input("Opcao: ").strip()
        if op == "0":
            break
        if op in acoes:
            acoes[op][1](storage)
        else:
            print("Opcao invalida. Tente novamente.")


if __name__ == "__main__":
    main()
