import os
import unittest
from unittest.mock import patch

from demo_config import (
    DEMO_EMPRESA_ID,
    demo_lancamentos,
    demo_tax_config,
    resolve_demo_mode,
    resolve_storage_targets,
)
from dto import PeriodoCenario
from regime_comparator import FonteRegime, comparar_regimes
from tax_engine import calcular_impostos, criar_cenario


class DemoModeTests(unittest.TestCase):
    def test_env_ou_toggle(self) -> None:
        with patch.dict(os.environ, {"LRE_DEMO": "true"}):
            self.assertTrue(resolve_demo_mode())
        with patch.dict(os.environ, {"LRE_DEMO": "0"}):
            self.assertFalse(resolve_demo_mode())
            self.assertTrue(resolve_demo_mode(toggle_enabled=True))

    def test_destinos_separados(self) -> None:
        demo = resolve_storage_targets(True)
        normal = resolve_storage_targets(False)

        self.assertEqual(demo["data_pasta"], "data_demo")
        self.assertEqual(normal["data_pasta"], "data")
        self.assertEqual(set(demo), set(normal))
        self.assertTrue(set(demo.values()).isdisjoint(normal.values()))


class DemoExemplosTests(unittest.TestCase):
    def test_exemplos_calculam(self) -> None:
        comercio = calcular_impostos(demo_tax_config("comercio"))
        servicos = calcular_impostos(demo_tax_config(" Servicos "))

        self.assertGreater(comercio.icms_a_pagar, 0.0)
        self.assertEqual(comercio.iss_a_pagar, 0.0)
        self.assertEqual(servicos.icms_a_pagar, 0.0)
        self.assertAlmostEqual(servicos.iss_a_pagar, 60_000.0, places=2)

    def test_exemplo_desconhecido(self) -> None:
        with self.assertRaises(ValueError):
            demo_tax_config("industria")

    def test_comparativo_demo(self) -> None:
        cenario = criar_cenario(DEMO_EMPRESA_ID, "Demo", PeriodoCenario("anual", 2026), demo_tax_config("comercio"))
        lancamentos = tuple(demo_lancamentos(2026, [1, 2, 3]))
        analise = comparar_regimes(
            DEMO_EMPRESA_ID,
            2026,
            [1, 2, 3],
            [
                FonteRegime("lucro_real", cenarios=(cenario,)),
                FonteRegime("lucro_presumido", lancamentos=lancamentos),
                FonteRegime("simples_nacional", lancamentos=lancamentos),
            ],
        )

        self.assertEqual(len(lancamentos), 6)
        self.assertEqual(lancamentos[0].id, "demo-lp-2026-01")
        self.assertTrue(analise.has_data)
        self.assertEqual(analise.percentual_cobertura, 100.0)
        self.assertLessEqual(len(analise.insights), 5)


if __name__ == "__main__":
    unittest.main()
