import json

import pytest

from chrono_assembly.description import load_description, load_description_file
from chrono_assembly.errors import ConfigurationError
from chrono_assembly.models import DipoleMateModel, Gender, ProximityMateModel


def test_loads_models_and_engine_options(peg_description):
    peg_description["tf_world_frame"] = "map"
    peg_description["publish_active_mates"] = True
    description = load_description(peg_description)

    assert description.engine.tf_world_frame == "map"
    assert description.engine.broadcast_tf
    assert description.engine.publish_active_mates
    assert description.engine.updates_per_second == 100.0
    assert description.engine.update_period == pytest.approx(0.01)

    peg = description.mate_models["peg"]
    assert isinstance(peg, ProximityMateModel)
    assert peg.joint_template.kind == "fixed"
    assert peg.joint_template.stiffness_attributes == ("erp",)
    assert peg.joint_template.parameters == {"erp": 0.8}
    assert peg.thresholds.max_trans_err == 0.01
    assert peg.ramp.duration == 0.1
    assert len(peg.symmetries) == 4

    socket = description.atom_models["socket"]
    assert len(socket.female_mate_points) == 4
    assert socket.female_mate_points[0].model is peg
    assert description.atom_models["peg"].male_mate_points[0].gender is Gender.MALE


def test_symmetry_given_as_string(peg_description):
    peg_description["mate_models"][0]["symmetry"] = {"rot": "1 2 2"}
    description = load_description(peg_description)
    assert len(description.atom_models["socket"].female_mate_points) == 4


def test_missing_symmetry_yields_single_female_point(peg_description):
    del peg_description["mate_models"][0]["symmetry"]
    description = load_description(peg_description)
    assert len(description.atom_models["socket"].female_mate_points) == 1


def test_dipole_model(peg_description):
    peg_description["mate_models"][0].update(
        {"model": "dipole", "range": 0.03, "engage_threshold": 0.6, "release_threshold": 0.2}
    )
    model = load_description(peg_description).mate_models["peg"]
    assert isinstance(model, DipoleMateModel)
    assert model.field_params.range == 0.03
    assert model.field_params.engage_threshold == 0.6


def test_duplicate_mate_model_keeps_first(peg_description):
    duplicate = dict(peg_description["mate_models"][0], max_trans_err=0.02)
    peg_description["mate_models"].append(duplicate)
    description = load_description(peg_description)
    assert description.mate_models["peg"].thresholds.max_trans_err == 0.01


@pytest.mark.parametrize(
    "mutate, message",
    [
        (lambda d: d["mate_models"][0].update(model="magnetic"), "not a valid model type"),
        (lambda d: d["mate_models"][0].pop("model"), "missing 'model'"),
        (lambda d: d["mate_models"][0].pop("type"), "missing 'type'"),
        (lambda d: d["mate_models"][0].pop("joint"), "missing 'joint'"),
        (lambda d: d["mate_models"][0]["joint"].pop("type"), "missing 'type'"),
        (lambda d: d["mate_models"][0].update(symmetry={"rot": [1, 0, 4]}), "invalid symmetry"),
        (lambda d: d["mate_models"][0].update(max_trans_err="close"), "must be a number"),
        (lambda d: d["mate_models"][0].update(sep_trans_err=0.001), "separation tolerances"),
        (lambda d: d["mate_models"][0].update(ramp={"shape": "cubic"}), "unknown ramp shape"),
        (lambda d: d["atom_models"][0]["mate_points"][0].update(gender="neuter"), "Unknown gender"),
        (lambda d: d["atom_models"][0]["mate_points"][0].update(type="bolt"), "unknown mate model"),
        (lambda d: d["atom_models"][0]["mate_points"][0].update(pose=[0, 0]), "invalid mate point pose"),
        (lambda d: d["atom_models"][0].pop("type"), "missing 'type'"),
        (lambda d: d.update(updates_per_second=0), "updates_per_second"),
    ],
)
def test_configuration_errors(peg_description, mutate, message):
    mutate(peg_description)
    with pytest.raises(ConfigurationError, match=message):
        load_description(peg_description)


def test_dipole_thresholds_need_hysteresis(peg_description):
    peg_description["mate_models"][0].update(
        {"model": "dipole", "engage_threshold": 0.2, "release_threshold": 0.4}
    )
    with pytest.raises(ConfigurationError, match="release_threshold"):
        load_description(peg_description)


def test_load_description_file(tmp_path, peg_description):
    path = tmp_path / "soup.json"
    path.write_text(json.dumps(peg_description), encoding="utf-8")
    description = load_description_file(path)
    assert set(description.atom_models) == {"socket", "peg"}


def test_load_description_file_rejects_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="invalid JSON"):
        load_description_file(path)


def test_load_description_file_allows_comments_and_trailing_commas(tmp_path):
    path = tmp_path / "soup.json5"
    path.write_text(
        """{
    // scanner rate in simulated seconds
    updates_per_second: 20,
    mate_models: [
        {model: "proximity", type: "peg", joint: {type: "fixed"},},
    ],
    atom_models: [
        {type: "socket", mate_points: [{type: "peg", gender: "female", pose: [0, 0, 0.05]}]},
    ],
}
""",
        encoding="utf-8",
    )
    description = load_description_file(path)
    assert description.engine.updates_per_second == 20.0
    assert len(description.atom_models["socket"].female_mate_points) == 1
