import math
import unittest

from input_utils import (
    InvalidInputError,
    campos_ausentes,
    exigir_finito,
    exigir_mes,
    exigir_percentual,
    exigir_valor,
    normalizar_meses,
)
from regime_utils import (
    canonicalize_regime,
    canonicalize_regimes,
    regime_calculado,
    regime_display,
)


class ValidacaoNumericaTests(unittest.TestCase):
    def test_exigir_valor(self) -> None:
        self.assertEqual(exigir_valor("x", 10), 10.0)
        for invalido in (-0.01, math.nan, math.inf, "10", None, True):
            with self.subTest(valor=invalido):
                with self.assertRaises(InvalidInputError):
                    exigir_valor("x", invalido)

    def test_exigir_percentual(self) -> None:
        self.assertEqual(exigir_percentual("p", 100), 100.0)
        with self.assertRaises(InvalidInputError):
            exigir_percentual("p", 100.5)

    def test_exigir_finito(self) -> None:
        with self.assertRaises(InvalidInputError) as ctx:
            exigir_finito("total", math.inf)
        self.assertIn("impacto=Resultado descartado", str(ctx.exception))

    def test_meses(self) -> None:
        self.assertEqual(normalizar_meses([3, 1, 3, 12]), [1, 3, 12])
        self.assertEqual(normalizar_meses([]), [])
        with self.assertRaises(InvalidInputError):
            exigir_mes("mes", 0)
        with self.assertRaises(InvalidInputError):
            normalizar_meses([1, "2"])

    def test_campos_ausentes(self) -> None:
        self.assertEqual(campos_ausentes({"a": 1, "b": None}, ("a", "b", "c")), ["b", "c"])


class RegimeUtilsTests(unittest.TestCase):
    def test_aliases(self) -> None:
        self.assertEqual(canonicalize_regime("Lucro Real"), "lucro_real")
        self.assertEqual(canonicalize_regime("LP"), "lucro_presumido")
        self.assertEqual(canonicalize_regime("simples-nacional"), "simples_nacional")

    def test_regime_desconhecido(self) -> None:
        with self.assertRaises(InvalidInputError):
            canonicalize_regime("mei")

    def test_display_e_calculado(self) -> None:
        self.assertEqual(regime_display("sn"), "Simples Nacional")
        self.assertTrue(regime_calculado("real"))
        self.assertFalse(regime_calculado("presumido"))

    def test_selecao_preserva_ordem(self) -> None:
        self.assertEqual(canonicalize_regimes(["sn", "real"]), ["simples_nacional", "lucro_real"])
        with self.assertRaises(InvalidInputError):
            canonicalize_regimes(["lp", "lucro_presumido"])


if __name__ == "__main__":
    unittest.main()
