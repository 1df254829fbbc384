import math
import unittest

from dto import TaxConfig
from input_utils import InvalidInputError
from lucro_real import apurar_icms


def _config(**valores) -> TaxConfig:
    base = dict(
        receita_bruta=0.0,
        icms_interno=0.0,
        icms_interestadual=0.0,
        pis_aliquota=0.0,
        cofins_aliquota=0.0,
        irpj_aliquota=0.0,
        irpj_adicional_aliquota=0.0,
        csll_aliquota=0.0,
        iss_aliquota=0.0,
    )
    base.update(valores)
    return TaxConfig(**base)


class ApuracaoICMSTests(unittest.TestCase):
    def test_debito_credito_compras_internas(self) -> None:
        icms = apurar_icms(_config(receita_bruta=1_800_000.0, icms_interno=18.0, compras_internas=600_000.0))

        self.assertAlmostEqual(icms.debito, 324_000.0, places=2)
        self.assertAlmostEqual(icms.credito, 108_000.0, places=2)
        self.assertAlmostEqual(icms.a_pagar, 216_000.0, places=2)
        self.assertEqual(icms.credito_proxima_apuracao, 0.0)

    def test_credito_maior_que_debito_vira_saldo(self) -> None:
        icms = apurar_icms(_config(receita_bruta=100_000.0, icms_interno=18.0, compras_internas=150_000.0))

        self.assertEqual(icms.a_pagar, 0.0)
        self.assertAlmostEqual(icms.credito_proxima_apuracao, icms.credito - icms.debito, places=6)
        self.assertAlmostEqual(icms.credito_proxima_apuracao, 9_000.0, places=2)

    def test_receita_com_st_nao_gera_debito(self) -> None:
        cheia = apurar_icms(_config(receita_bruta=200_000.0, icms_interno=18.0))
        metade_st = apurar_icms(_config(receita_bruta=200_000.0, icms_interno=18.0, percentual_st=50.0))
        toda_st = apurar_icms(_config(receita_bruta=200_000.0, icms_interno=18.0, percentual_st=100.0))

        self.assertAlmostEqual(metade_st.debito, cheia.debito / 2, places=2)
        self.assertEqual(toda_st.debito, 0.0)

    def test_compras_interestaduais_usam_aliquota_interestadual(self) -> None:
        icms = apurar_icms(
            _config(
                receita_bruta=500_000.0,
                icms_interno=18.0,
                icms_interestadual=12.0,
                compras_interestaduais=100_000.0,
                compras_uso=10_000.0,
            )
        )

        self.assertAlmostEqual(icms.credito_compras_interestaduais, 12_000.0, places=2)
        self.assertAlmostEqual(icms.credito_compras_uso, 1_800.0, places=2)
        self.assertAlmostEqual(icms.credito, 13_800.0, places=2)

    def test_creditos_adicionais_somam_valor_cheio(self) -> None:
        icms = apurar_icms(
            _config(
                receita_bruta=100_000.0,
                icms_interno=18.0,
                credito_estoque_inicial=1_000.0,
                credito_ativo_imobilizado=500.0,
                credito_energia_industria=250.0,
                credito_st_entrada=150.0,
                outros_creditos=100.0,
            )
        )

        self.assertAlmostEqual(icms.creditos_adicionais, 2_000.0, places=2)
        self.assertAlmostEqual(icms.a_pagar, 16_000.0, places=2)

    def test_memoria_divide_base_entre_internas_e_interestaduais(self) -> None:
        icms = apurar_icms(
            _config(receita_bruta=100_000.0, icms_interno=18.0, vendas_internas=70.0, vendas_interestaduais=30.0)
        )

        self.assertAlmostEqual(icms.base_interna, 70_000.0, places=2)
        self.assertAlmostEqual(icms.base_interestadual, 30_000.0, places=2)
        self.assertAlmostEqual(icms.debito, 18_000.0, places=2)

    def test_entradas_invalidas_sao_rejeitadas(self) -> None:
        invalidas = (
            {"receita_bruta": -1.0},
            {"receita_bruta": math.nan},
            {"compras_internas": math.inf},
            {"icms_interno": 150.0},
            {"vendas_internas": 80.0, "vendas_interestaduais": 30.0},
        )
        for valores in invalidas:
            with self.subTest(valores=valores):
                with self.assertRaises(InvalidInputError):
                    apurar_icms(_config(**valores))

    def test_erro_informa_campo(self) -> None:
        with self.assertRaises(InvalidInputError) as ctx:
            apurar_icms(_config(compras_uso=-10.0))
        self.assertEqual(ctx.exception.campo, "compras_uso")
        self.assertIn("campo=compras_uso", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
