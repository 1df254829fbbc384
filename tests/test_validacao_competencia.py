import unittest

from input_utils import PERIODICIDADES_VALIDAS, validar_competencia, validar_periodicidade


class ValidacaoCompetenciaTests(unittest.TestCase):
    def test_periodicidade_normalizada(self) -> None:
        self.assertEqual(validar_periodicidade(" Mensal "), "mensal")
        self.assertEqual(validar_periodicidade("desconhecida"), "anual")
        self.assertEqual(validar_periodicidade(None), "anual")

    def test_competencias_validas(self) -> None:
        casos = (
            ("mensal", "2026-02", "2026-02"),
            ("trimestral", "2026-t3", "2026-T3"),
            ("semestral", "2026-S2", "2026-S2"),
            ("anual", " 2026 ", "2026"),
        )
        for periodicidade, competencia, esperado in casos:
            with self.subTest(periodicidade=periodicidade):
                self.assertEqual(validar_competencia(periodicidade, competencia), (True, esperado))

    def test_competencias_invalidas_citam_periodicidade(self) -> None:
        casos = (
            ("mensal", "2026-13"),
            ("trimestral", "2026-T5"),
            ("semestral", "2026-S3"),
            ("anual", "2026-01"),
        )
        for periodicidade, competencia in casos:
            with self.subTest(periodicidade=periodicidade):
                ok, erro = validar_competencia(periodicidade, competencia)
                self.assertFalse(ok)
                self.assertIn(periodicidade, erro)

    def test_todas_as_periodicidades_cobertas(self) -> None:
        self.assertEqual(PERIODICIDADES_VALIDAS, ("mensal", "trimestral", "semestral", "anual"))


if __name__ == "__main__":
    unittest.main()
