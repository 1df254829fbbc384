import unittest
from unittest.mock import patch

from dto import ExpenseItem, PeriodoCenario, TaxConfig, TaxResult
from input_utils import InvalidInputError
from tax_engine import (
    alterar_status_cenario,
    calcular_impostos,
    config_mensal,
    criar_cenario,
    gerar_projecao_mensal,
    limite_adicional_por_periodicidade,
    recalcular_cenario,
    tax_config_from_dict,
    tax_config_padrao,
)


def _config(**valores) -> TaxConfig:
    base = dict(
        receita_bruta=1_000_000.0,
        icms_interno=18.0,
        icms_interestadual=12.0,
        pis_aliquota=1.65,
        cofins_aliquota=7.6,
        irpj_aliquota=15.0,
        irpj_adicional_aliquota=10.0,
        csll_aliquota=9.0,
        iss_aliquota=0.0,
        compras_internas=300_000.0,
        cmv_total=400_000.0,
        energia_eletrica=12_000.0,
        despesas=(ExpenseItem("adm", "Administrativo", 100_000.0, "despesa", "sem-credito"),),
    )
    base.update(valores)
    return TaxConfig(**base)


class CalcularImpostosTests(unittest.TestCase):
    def test_mesma_configuracao_mesmo_resultado(self) -> None:
        config = _config()
        self.assertEqual(calcular_impostos(config), calcular_impostos(config))

    def test_totais_batem_com_componentes(self) -> None:
        r = calcular_impostos(_config(iss_aliquota=2.0))

        self.assertAlmostEqual(
            r.total_impostos,
            r.icms_a_pagar + r.pis_a_pagar + r.cofins_a_pagar + r.irpj_a_pagar + r.csll_a_pagar + r.iss_a_pagar,
            places=6,
        )
        self.assertAlmostEqual(
            r.total_impostos,
            r.total_impostos_federais + r.total_impostos_estaduais + r.total_impostos_municipais,
            places=6,
        )
        self.assertAlmostEqual(r.total_impostos_estaduais, r.icms_a_pagar, places=6)
        self.assertAlmostEqual(r.total_impostos_municipais, r.iss_a_pagar, places=6)

    def test_lucro_liquido_e_indicadores(self) -> None:
        r = calcular_impostos(_config())

        self.assertAlmostEqual(
            r.lucro_liquido,
            r.receita_bruta_total - r.cmv - r.despesas_operacionais - r.total_impostos,
            places=6,
        )
        self.assertAlmostEqual(r.carga_tributaria, r.total_impostos / r.receita_bruta_total * 100, places=6)
        self.assertAlmostEqual(r.margem_lucro, r.lucro_liquido / r.receita_bruta_total * 100, places=6)

    def test_receita_zero_nao_divide_por_zero(self) -> None:
        r = calcular_impostos(_config(receita_bruta=0.0, compras_internas=0.0, cmv_total=0.0, despesas=()))

        self.assertEqual(r.total_impostos, 0.0)
        self.assertEqual(r.carga_tributaria, 0.0)
        self.assertEqual(r.margem_lucro, 0.0)

    def test_impostos_nunca_negativos(self) -> None:
        r = calcular_impostos(_config(receita_bruta=50_000.0, compras_internas=500_000.0, cmv_total=900_000.0))

        for nome, valor in r.impostos_por_tipo().items():
            with self.subTest(imposto=nome):
                self.assertGreaterEqual(valor, 0.0)
        self.assertLess(r.lucro_real, 0.0)
        self.assertGreater(r.credito_icms_proxima_apuracao, 0.0)

    def test_valores_do_icms_no_resultado(self) -> None:
        r = calcular_impostos(_config(receita_bruta=1_800_000.0, compras_internas=600_000.0))
        self.assertAlmostEqual(r.icms_a_pagar, 216_000.0, places=2)
        self.assertAlmostEqual(r.debito_icms, 324_000.0, places=2)
        self.assertAlmostEqual(r.credito_icms, 108_000.0, places=2)

    def test_configuracao_invalida(self) -> None:
        with self.assertRaises(InvalidInputError):
            calcular_impostos(_config(pis_aliquota=-1.0))


class ProjecaoMensalTests(unittest.TestCase):
    def test_doze_meses_iguais(self) -> None:
        projecao = gerar_projecao_mensal(_config(), 2026)

        self.assertEqual([p.mes for p in projecao], list(range(1, 13)))
        self.assertTrue(all(p.ano == 2026 for p in projecao))
        self.assertEqual(len({p.total_impostos for p in projecao}), 1)
        self.assertAlmostEqual(projecao[0].receita, 1_000_000.0 / 12, places=2)

    def test_limite_do_adicional_nao_e_rateado(self) -> None:
        config = _config(
            receita_bruta=1_200_000.0,
            compras_internas=0.0,
            cmv_total=600_000.0,
            energia_eletrica=0.0,
            despesas=(ExpenseItem("adm", "Administrativo", 120_000.0),),
        )
        anual = calcular_impostos(config)
        projecao = gerar_projecao_mensal(config, 2026)

        self.assertAlmostEqual(anual.irpj_a_pagar, 96_000.0, places=2)
        self.assertAlmostEqual(projecao[0].irpj, 6_000.0, places=2)
        self.assertAlmostEqual(sum(p.irpj for p in projecao), 72_000.0, places=2)

    def test_config_mensal_rateia_fluxos_e_despesas(self) -> None:
        mensal = config_mensal(_config())

        self.assertAlmostEqual(mensal.receita_bruta, 1_000_000.0 / 12, places=6)
        self.assertAlmostEqual(mensal.despesas[0].valor, 100_000.0 / 12, places=6)
        self.assertEqual(mensal.icms_interno, 18.0)
        self.assertEqual(mensal.limite_adicional_irpj, 240_000.0)


class CenarioTests(unittest.TestCase):
    def test_criar_cenario_calcula_resultado(self) -> None:
        with patch("tax_engine._agora_iso", return_value="2026-03-01T10:00:00"):
            cenario = criar_cenario("emp-1", "  ", PeriodoCenario("anual", 2026), _config())

        self.assertEqual(cenario.nome, "Cenario sem nome")
        self.assertEqual(cenario.status, "rascunho")
        self.assertEqual(cenario.criado_em, "2026-03-01T10:00:00")
        self.assertEqual(cenario.resultado, calcular_impostos(cenario.config))
        self.assertEqual(len(cenario.id), 32)

    def test_criar_cenario_exige_empresa_e_periodo_valido(self) -> None:
        with self.assertRaises(InvalidInputError):
            criar_cenario("", "X", PeriodoCenario("anual", 2026), _config())
        with self.assertRaises(InvalidInputError):
            criar_cenario("emp-1", "X", PeriodoCenario("mensal", 2026, mes=13), _config())

    def test_recalcular_substitui_resultado(self) -> None:
        with patch("tax_engine._agora_iso", return_value="2026-03-01T10:00:00"):
            cenario = criar_cenario("emp-1", "Base", PeriodoCenario("anual", 2026), _config(), cenario_id="c1")
        nova = _config(receita_bruta=2_000_000.0)
        with patch("tax_engine._agora_iso", return_value="2026-04-01T08:00:00"):
            with self.assertLogs("lucro_real_engine.tax_engine", level="INFO"):
                atualizado = recalcular_cenario(cenario, nova)

        self.assertEqual(atualizado.id, "c1")
        self.assertEqual(atualizado.criado_em, "2026-03-01T10:00:00")
        self.assertEqual(atualizado.atualizado_em, "2026-04-01T08:00:00")
        self.assertEqual(atualizado.resultado, calcular_impostos(nova))
        self.assertNotEqual(atualizado.resultado, cenario.resultado)

    def test_alterar_status(self) -> None:
        cenario = criar_cenario("emp-1", "Base", PeriodoCenario("anual", 2026), _config())
        self.assertEqual(alterar_status_cenario(cenario, "arquivado").status, "arquivado")
        with self.assertRaises(InvalidInputError):
            alterar_status_cenario(cenario, "publicado")


class ConfiguracaoPadraoTests(unittest.TestCase):
    def test_aliquotas_do_ruleset(self) -> None:
        config = tax_config_padrao(500_000.0)

        self.assertEqual(config.receita_bruta, 500_000.0)
        self.assertEqual(config.icms_interno, 18.0)
        self.assertEqual(config.icms_interestadual, 12.0)
        self.assertEqual(config.pis_aliquota, 1.65)
        self.assertEqual(config.cofins_aliquota, 7.6)
        self.assertEqual(config.irpj_aliquota, 15.0)
        self.assertEqual(config.irpj_adicional_aliquota, 10.0)
        self.assertEqual(config.csll_aliquota, 9.0)
        self.assertEqual(config.limite_adicional_irpj, 240_000.0)

    def test_kwargs_sobrescrevem_e_despesas_aceitam_itens(self) -> None:
        config = tax_config_padrao(
            500_000.0,
            iss_aliquota=5.0,
            despesas=[ExpenseItem("x", "Aluguel", 1_000.0, "despesa", "com-credito")],
        )
        self.assertEqual(config.iss_aliquota, 5.0)
        self.assertEqual(config.despesa("x").credito, "com-credito")

    def test_from_dict_rejeita_campos_obrigatorios_ausentes(self) -> None:
        with self.assertRaises(InvalidInputError) as ctx:
            tax_config_from_dict({"receita_bruta": 1000.0})
        self.assertIn("icms_interno", str(ctx.exception))

    def test_from_dict_ignora_chaves_desconhecidas(self) -> None:
        payload = _config().to_dict()
        payload["campo_legado"] = "x"
        self.assertEqual(tax_config_from_dict(payload), _config())

    def test_limites_por_periodicidade(self) -> None:
        self.assertEqual(limite_adicional_por_periodicidade("mensal"), 20_000.0)
        self.assertEqual(limite_adicional_por_periodicidade("trimestral"), 60_000.0)
        self.assertEqual(limite_adicional_por_periodicidade("semestral"), 120_000.0)
        self.assertEqual(limite_adicional_por_periodicidade("anual"), 240_000.0)
        self.assertEqual(limite_adicional_por_periodicidade("quinzenal"), 240_000.0)

    def test_resultado_serializado_volta_igual(self) -> None:
        r = calcular_impostos(_config())
        self.assertEqual(TaxResult.from_dict(r.to_dict()), r)


if __name__ == "__main__":
    unittest.main()
