import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import ruleset_loader
from tax_engine import tax_config_padrao

RULESET_TESTE = "TEST_FROZEN_RULESET"


def _gravar_ruleset(base: Path, icms_interno: float) -> None:
    rs_dir = base / "rulesets" / RULESET_TESTE
    rs_dir.mkdir(parents=True, exist_ok=True)
    with open(rs_dir / "metadata.json", "w", encoding="utf-8") as f:
        json.dump({"ruleset_id": RULESET_TESTE, "vigencia_inicio": "2026-01-01"}, f)
    params = {
        "icms_interno": icms_interno,
        "icms_interestadual": 12,
        "pis_aliquota": 1.65,
        "cofins_aliquota": 7.6,
        "irpj_aliquota": 15,
        "irpj_adicional_aliquota": 10,
        "csll_aliquota": 9,
        "iss_aliquota": 0,
        "limite_adicional_irpj": 240000,
    }
    with open(rs_dir / "real_params.json", "w", encoding="utf-8") as f:
        json.dump(params, f)


class RulesetLoaderFrozenTests(unittest.TestCase):
    def setUp(self) -> None:
        ruleset_loader.clear_cache()

    def tearDown(self) -> None:
        ruleset_loader.clear_cache()

    def test_executavel_usa_meipass(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            _gravar_ruleset(Path(tmp), icms_interno=17)
            with patch.object(ruleset_loader.sys, "frozen", True, create=True), patch.object(
                ruleset_loader.sys, "_MEIPASS", tmp, create=True
            ):
                metadata = ruleset_loader.load_ruleset(RULESET_TESTE)
                config = tax_config_padrao(1_000.0, ruleset_id=RULESET_TESTE)

        self.assertEqual(metadata["ruleset_id"], RULESET_TESTE)
        self.assertEqual(config.icms_interno, 17.0)

    def test_executavel_sem_meipass_usa_pasta_do_binario(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            _gravar_ruleset(Path(tmp), icms_interno=19)
            with patch.object(ruleset_loader.sys, "frozen", True, create=True), patch.object(
                ruleset_loader.sys, "_MEIPASS", "", create=True
            ), patch.object(ruleset_loader.sys, "executable", os.path.join(tmp, "lucro_real.exe")):
                params = ruleset_loader.get_real_params(RULESET_TESTE)

        self.assertEqual(params["icms_interno"], 19)


if __name__ == "__main__":
    unittest.main()
