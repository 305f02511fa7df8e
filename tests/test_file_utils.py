import os
import pytest
from unittest.mock import patch
from medroute.file_utils import generate_output_filename, MAX_ATTEMPTS


def test_first_name_is_reserved(tmp_path):
    filename = generate_output_filename("AIIMS Bhopal", "json", str(tmp_path))
    assert filename == os.path.join(str(tmp_path), "AIIMS Bhopal route.json")
    assert os.path.exists(filename)
    assert os.path.getsize(filename) == 0


def test_numbered_variants(tmp_path):
    first = generate_output_filename("AIIMS Bhopal", "gpx", str(tmp_path))
    second = generate_output_filename("AIIMS Bhopal", "gpx", str(tmp_path))
    third = generate_output_filename("AIIMS Bhopal", "gpx", str(tmp_path))
    assert os.path.basename(first) == "AIIMS Bhopal route.gpx"
    assert os.path.basename(second) == "AIIMS Bhopal route (1).gpx"
    assert os.path.basename(third) == "AIIMS Bhopal route (2).gpx"


def test_label_is_sanitized(tmp_path):
    filename = generate_output_filename("St Thomas' Hospital/ER", "json", str(tmp_path))
    assert os.path.basename(filename) == "St Thomas HospitalER route.json"


def test_empty_label_falls_back(tmp_path):
    filename = generate_output_filename("???", "json", str(tmp_path))
    assert os.path.basename(filename) == "medroute route.json"


def test_gives_up_after_max_attempts(tmp_path):
    (tmp_path / "Dest route.json").touch()
    for i in range(1, MAX_ATTEMPTS + 1):
        (tmp_path / f"Dest route ({i}).json").touch()
    with pytest.raises(RuntimeError):
        generate_output_filename("Dest", "json", str(tmp_path))


def test_permission_error_becomes_value_error(tmp_path):
    with patch("builtins.open", side_effect=PermissionError("denied")):
        with pytest.raises(ValueError):
            generate_output_filename("Dest", "json", str(tmp_path))
