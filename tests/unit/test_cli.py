import pytest

from plyband import cli
from plyband.config import Settings
from plyband.contracts.geo import GeoProfile
from plyband.services.combine_service import CombineService
from tests.factories import FakeReader, FakeWriter, worked_datasets


@pytest.fixture
def fake_service(monkeypatch):
    holder = {}

    def _build(settings: Settings):
        svc = CombineService(reader=FakeReader(holder["datasets"]), writer=FakeWriter(), settings=settings)
        holder["svc"] = svc
        return svc

    holder["datasets"] = worked_datasets()
    monkeypatch.setattr(cli, "build_combine_service", _build)
    return holder


def test_cli_combines_rgb(fake_service, tmp_path, capsys):
    out = tmp_path / "rgb.tif"
    rc = cli.main(["-r", "a.tif", "-g", "b.tif:1", "-b", "c.tif", "-o", str(out)])
    assert rc == 0
    assert capsys.readouterr().out.strip().endswith(str(out))
    svc = fake_service["svc"]
    uri, raster, driver = svc.writer.written[0]
    assert uri == str(out)
    assert raster.data.shape == (3, 95, 95)
    assert [w[0] for w in svc.reader.windows] == ["a.tif", "b.tif", "c.tif"]


def test_cli_extra_bands_and_format(fake_service, tmp_path):
    rc = cli.main(["-r", "a.tif", "-g", "b.tif", "-b", "c.tif", "--band", "a.tif",
                   "-o", str(tmp_path / "o.tif"), "--output-format", "COG"])
    assert rc == 0
    _, raster, driver = fake_service["svc"].writer.written[0]
    assert raster.data.shape[0] == 4
    assert driver == "COG"


def test_cli_reports_validation_error(fake_service, tmp_path, capsys):
    prof_b, arrs_b = fake_service["datasets"]["b.tif"]
    fake_service["datasets"]["b.tif"] = (
        GeoProfile(1, "uint16", 100, 100, prof_b.transform, "OTHER"), arrs_b)
    rc = cli.main(["-r", "a.tif", "-g", "b.tif", "-b", "c.tif", "-o", str(tmp_path / "o.tif")])
    assert rc == 1
    err = capsys.readouterr().err
    assert "[ERROR] Validación fallida" in err


def test_cli_bad_band_index(fake_service, tmp_path, capsys):
    rc = cli.main(["-r", "a.tif:0", "-g", "b.tif", "-b", "c.tif", "-o", str(tmp_path / "o.tif")])
    assert rc == 1
    assert "[ERROR]" in capsys.readouterr().err


def test_cli_missing_band_in_dataset(fake_service, tmp_path, capsys):
    rc = cli.main(["-r", "a.tif:2", "-g", "b.tif", "-b", "c.tif", "-o", str(tmp_path / "o.tif")])
    assert rc == 1
    assert "Error de I/O" in capsys.readouterr().err


def test_cli_requires_rgb():
    with pytest.raises(SystemExit) as ei:
        cli.main(["-r", "a.tif"])
    assert ei.value.code == 2
