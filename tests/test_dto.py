import unittest

from dto import (
    ExpenseItem,
    ManualMonthlyEntry,
    PeriodoCenario,
    Scenario,
    TaxConfig,
    adicionar_despesa,
    atualizar_despesa,
    remover_despesa,
)
from input_utils import InvalidInputError
from tax_engine import criar_cenario, tax_config_padrao


class ExpenseItemTests(unittest.TestCase):
    def test_defaults(self) -> None:
        item = ExpenseItem("a", "Aluguel", 1_000.0)
        self.assertEqual(item.tipo, "despesa")
        self.assertEqual(item.credito, "sem-credito")

    def test_tipo_e_credito_invalidos(self) -> None:
        with self.assertRaises(InvalidInputError):
            ExpenseItem("a", "Aluguel", 1_000.0, tipo="investimento").validar()
        with self.assertRaises(InvalidInputError):
            ExpenseItem("a", "Aluguel", 1_000.0, credito="parcial").validar()
        with self.assertRaises(InvalidInputError):
            ExpenseItem.from_dict({"id": "a", "descricao": "Aluguel"})


class ColecaoDespesasTests(unittest.TestCase):
    def setUp(self) -> None:
        self.config = tax_config_padrao(100_000.0)

    def test_adicionar_atualizar_remover(self) -> None:
        config = adicionar_despesa(self.config, ExpenseItem("a", "Aluguel", 1_000.0))
        config = atualizar_despesa(config, ExpenseItem("a", "Aluguel", 1_500.0, credito="com-credito"))

        self.assertEqual(len(config.despesas), 1)
        self.assertEqual(config.despesa("a").valor, 1_500.0)
        self.assertEqual(self.config.despesas, ())
        self.assertEqual(remover_despesa(config, "a").despesas, ())

    def test_id_repetido_e_rejeitado(self) -> None:
        config = adicionar_despesa(self.config, ExpenseItem("a", "Aluguel", 1_000.0))
        with self.assertRaises(InvalidInputError):
            adicionar_despesa(config, ExpenseItem("a", "Outro", 10.0))

    def test_despesa_inexistente(self) -> None:
        with self.assertRaises(InvalidInputError):
            atualizar_despesa(self.config, ExpenseItem("x", "X", 1.0))
        with self.assertRaises(InvalidInputError):
            remover_despesa(self.config, "x")


class TaxConfigTests(unittest.TestCase):
    def test_from_dict_valores_nao_numericos(self) -> None:
        payload = tax_config_padrao(100_000.0).to_dict()
        payload["cmv_total"] = "10.000"
        with self.assertRaises(InvalidInputError) as ctx:
            TaxConfig.from_dict(payload)
        self.assertEqual(ctx.exception.campo, "cmv_total")

    def test_from_dict_payload_nao_objeto(self) -> None:
        with self.assertRaises(InvalidInputError):
            TaxConfig.from_dict([1, 2, 3])

    def test_configuracao_ida_e_volta(self) -> None:
        config = tax_config_padrao(
            250_000.0,
            despesas=[ExpenseItem("f", "Frete extra", 2_000.0, "custo", "com-credito", "logistica")],
        )
        self.assertEqual(TaxConfig.from_dict(config.to_dict()), config)


class PeriodoCenarioTests(unittest.TestCase):
    def test_meses_por_tipo(self) -> None:
        self.assertEqual(PeriodoCenario("mensal", 2026, mes=5).meses(), [5])
        self.assertEqual(PeriodoCenario("trimestral", 2026, trimestre=2).meses(), [4, 5, 6])
        self.assertEqual(PeriodoCenario("semestral", 2026, semestre=2).meses(), [7, 8, 9, 10, 11, 12])
        self.assertEqual(PeriodoCenario("anual", 2026).meses(), list(range(1, 13)))

    def test_periodo_invalido(self) -> None:
        for periodo in (
            PeriodoCenario("mensal", 2026),
            PeriodoCenario("trimestral", 2026, trimestre=5),
            PeriodoCenario("semestral", 2026, semestre=0),
            PeriodoCenario("bienal", 2026),
        ):
            with self.subTest(periodo=periodo):
                with self.assertRaises(InvalidInputError):
                    periodo.meses()


class ScenarioTests(unittest.TestCase):
    def test_ida_e_volta(self) -> None:
        cenario = criar_cenario("emp-1", "Base", PeriodoCenario("trimestral", 2026, trimestre=1), tax_config_padrao(1e6))
        self.assertEqual(Scenario.from_dict(cenario.to_dict()), cenario)

    def test_resultado_incompleto_e_rejeitado(self) -> None:
        payload = criar_cenario("emp-1", "Base", PeriodoCenario("anual", 2026), tax_config_padrao(1e6)).to_dict()
        del payload["resultado"]["lucro_liquido"]
        with self.assertRaises(InvalidInputError):
            Scenario.from_dict(payload)


class ManualMonthlyEntryTests(unittest.TestCase):
    def test_totais(self) -> None:
        entry = ManualMonthlyEntry("1", "emp-1", 3, 2026, "presumido", 100_000.0, pis=650.0, cofins=3_000.0, cpp=5_000.0)

        self.assertEqual(entry.total_impostos, 8_650.0)
        self.assertEqual(entry.lucro_liquido, 91_350.0)
        self.assertEqual(entry.chave_natural, ("emp-1", 3, 2026, "lucro_presumido"))

    def test_from_dict_canonicaliza_regime(self) -> None:
        entry = ManualMonthlyEntry.from_dict(
            {"id": "1", "empresa_id": "emp-1", "mes": 1, "ano": 2026, "regime": "SN", "receita": 10.0}
        )
        self.assertEqual(entry.regime, "simples_nacional")
        self.assertEqual(entry.outros, 0.0)

    def test_from_dict_converte_ano_texto(self) -> None:
        base = {"id": "1", "empresa_id": "emp-1", "mes": 1, "regime": "lp", "receita": 10.0}
        self.assertEqual(ManualMonthlyEntry.from_dict({**base, "ano": " 2026"}).ano, 2026)
        for ano in ("vinte", 2026.5, 26):
            with self.subTest(ano=ano):
                with self.assertRaises(InvalidInputError):
                    ManualMonthlyEntry.from_dict({**base, "ano": ano})

    def test_entradas_invalidas(self) -> None:
        invalidos = (
            ManualMonthlyEntry("1", "", 1, 2026, "lucro_real", 10.0),
            ManualMonthlyEntry("1", "emp-1", 13, 2026, "lucro_real", 10.0),
            ManualMonthlyEntry("1", "emp-1", 1, 2026, "mei", 10.0),
            ManualMonthlyEntry("1", "emp-1", 1, 2026, "lucro_real", 10.0, icms=-1.0),
            ManualMonthlyEntry("1", "emp-1", 1, "2026", "lucro_real", 10.0),
        )
        for entry in invalidos:
            with self.subTest(entry=entry):
                with self.assertRaises(InvalidInputError):
                    entry.validar()


if __name__ == "__main__":
    unittest.main()
