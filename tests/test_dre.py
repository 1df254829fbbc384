import unittest

from dre import linhas_dre, montar_dre
from dto import ExpenseItem
from tax_engine import calcular_impostos, tax_config_padrao


class DRETests(unittest.TestCase):
    def setUp(self) -> None:
        self.resultado = calcular_impostos(
            tax_config_padrao(
                1_800_000.0,
                compras_internas=600_000.0,
                cmv_total=900_000.0,
                despesas=[ExpenseItem("adm", "Administrativo", 200_000.0)],
            )
        )
        self.dre = montar_dre(self.resultado)

    def test_lucro_liquido_igual_ao_do_resultado(self) -> None:
        self.assertAlmostEqual(self.dre.lucro_liquido, self.resultado.lucro_liquido, places=6)

    def test_deducoes_e_subtotais(self) -> None:
        r = self.resultado
        self.assertAlmostEqual(
            self.dre.total_deducoes,
            r.icms_a_pagar + r.pis_a_pagar + r.cofins_a_pagar + r.iss_a_pagar,
            places=6,
        )
        self.assertAlmostEqual(self.dre.receita_liquida, 1_800_000.0 - self.dre.total_deducoes, places=6)
        self.assertAlmostEqual(self.dre.lucro_bruto, self.dre.receita_liquida - 900_000.0, places=6)
        self.assertAlmostEqual(self.dre.lucro_antes_ir_csll, self.dre.lucro_bruto - 200_000.0, places=6)
        self.assertAlmostEqual(self.dre.margem_liquida, r.margem_lucro, places=6)

    def test_linhas_em_ordem(self) -> None:
        linhas = linhas_dre(self.dre)
        self.assertEqual(linhas[0], ("Receita bruta de vendas", 1_800_000.0))
        self.assertEqual(linhas[-1][0], "= Lucro liquido")
        self.assertLessEqual(linhas[1][1], 0.0)

    def test_receita_zero(self) -> None:
        dre = montar_dre(calcular_impostos(tax_config_padrao(0.0)))
        self.assertEqual(dre.margem_bruta, 0.0)
        self.assertEqual(dre.margem_liquida, 0.0)


if __name__ == "__main__":
    unittest.main()
