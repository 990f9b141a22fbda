from pathlib import Path

import pandas as pd
import pytest

from orthobundle.config import HubConfig
from orthobundle.core.bundle import OrthologBundle
from orthobundle.core.trees import TreeStructure
from orthobundle.curation import build_bundle, publish_bundle

REFERENCE_TREE = "(((9606:90,10090:90):707,7227:797):300,4932:1097);"


def write_tmp(path: Path, content: str) -> Path:
    lines = [line.strip() for line in content.strip().splitlines()]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def make_bundle(
    species=None,
    groups=None,
    mappings=None,
    newick="((9606:1,10090:1):2,7227:3);",
    source="string",
    version="11.0",
) -> OrthologBundle:
    if species is None:
        species = [
            (9606, "Homo sapiens", "Eukaryota"),
            (10090, "Mus musculus", "Eukaryota"),
            (7227, "Drosophila melanogaster", "Eukaryota"),
        ]
    if groups is None:
        groups = ["STR:COG0001", "STR:NOG1"]
    if mappings is None:
        mappings = [
            ("STR:COG0001", 9606, "9606.P1"),
            ("STR:COG0001", 10090, "10090.P1"),
            ("STR:NOG1", 7227, "7227.P9"),
        ]
    return OrthologBundle(
        source=source,
        version=version,
        species=pd.DataFrame(species, columns=["species_id", "species_name", "domain"]),
        groups=pd.DataFrame({"group_id": groups}),
        mappings=pd.DataFrame(mappings, columns=["group_id", "species_id", "protein_id"]),
        tree=TreeStructure.from_newick(newick),
    )


@pytest.fixture
def tree_file(tmp_path):
    return write_tmp(tmp_path / "timetree.nwk", REFERENCE_TREE)


@pytest.fixture
def string_dumps(tmp_path, tree_file):
    species = write_tmp(
        tmp_path / "species.v11.0.txt",
        """
        #taxon_id\tSTRING_type\tSTRING_name_compact\tofficial_name_NCBI\tdomain
        9606\tcore\tHomo sapiens\tHomo sapiens\tEukaryota
        10090\tcore\tMus musculus\tMus musculus\tEukaryota
        7227\tcore\tDrosophila melanogaster\tDrosophila melanogaster\tEukaryota
        511145\tcore\tEscherichia coli\tEscherichia coli str. K-12 substr. MG1655\tBacteria
        """,
    )
    mappings = write_tmp(
        tmp_path / "COG.mappings.v11.0.txt",
        """
        #protein\tstart_position\tend_position\torthologous_group\tprotein_annotation
        9606.ENSP0001\t1\t300\tCOG0001\tGlutamate-1-semialdehyde aminotransferase
        9606.ENSP0001\t1\t300\tCOG0001\tGlutamate-1-semialdehyde aminotransferase
        10090.ENSMUSP0001\t1\t310\tCOG0001\tGlutamate-1-semialdehyde aminotransferase
        7227.FBpp0001\t5\t290\tCOG0001\tGlutamate-1-semialdehyde "aminotransferase"
        9606.ENSP0002\t1\t120\tCOG0002\tN-acetyl-gamma-glutamyl-phosphate reductase
        511145.b0001\t1\t130\tCOG0002\tN-acetyl-gamma-glutamyl-phosphate reductase
        7227.FBpp0002\t1\t80\tNOG1\tuncharacterised
        """,
    )
    return {"species": species, "mappings": mappings, "tree": tree_file}


@pytest.fixture
def oma_dumps(tmp_path, tree_file):
    species = write_tmp(
        tmp_path / "oma-species.txt",
        """
        # Format: OMA code<tab>Taxon ID<tab>Scientific name<tab>Genome Source<tab>Version/Release
        HUMAN\t9606\tHomo sapiens\tEnsembl\tGRCh38
        MOUSE\t10090\tMus musculus\tEnsembl\tGRCm38
        DROME\t7227\tDrosophila melanogaster\tEnsembl\tBDGP6
        """,
    )
    groups = write_tmp(
        tmp_path / "oma-groups.txt",
        """
        # Orthologous groups
        # Group number<tab>Fingerprint<tab>OMA Protein IDs
        1\tAAAKKLM\tHUMAN00001\tMOUSE00001\tDROME00001
        2\tCCDEEFG\tHUMAN00002\tMOUSE00007\tYEAST00001
        """,
    )
    return {"species": species, "mappings": groups, "tree": tree_file}


@pytest.fixture
def orthodb_dumps(tmp_path, tree_file):
    species = write_tmp(
        tmp_path / "odb10v1_species.tab",
        """
        9606\t9606_0\tHomo sapiens\tGCF_000001405.39\t19000\t17000\tEnsembl
        10090\t10090_0\tMus musculus\tGCF_000001635.26\t20000\t17500\tEnsembl
        4932\t4932_0\tSaccharomyces cerevisiae\tGCF_000146045.2\t5900\t5000\tNCBI
        """,
    )
    og2genes = write_tmp(
        tmp_path / "odb10v1_OG2genes.tab",
        """
        1at2759\t9606_0:00000a
        1at2759\t10090_0:00000b
        1at2759\t4932_0:00000c
        7at33208\t9606_0:00000d
        7at33208\t10090_0:00000e
        """,
    )
    return {"species": species, "mappings": og2genes, "tree": tree_file}


@pytest.fixture
def string_bundle(string_dumps):
    return build_bundle(
        "string",
        string_dumps["species"],
        string_dumps["mappings"],
        string_dumps["tree"],
        "11.0",
        domain="Eukaryota",
    )


@pytest.fixture
def hub(tmp_path, string_bundle):
    hub_dir = tmp_path / "hub"
    publish_bundle(string_bundle, hub_dir, description="Test snapshot")
    return hub_dir


@pytest.fixture
def hub_config(tmp_path, hub):
    return HubConfig(catalog=str(hub / "catalog.json"), cache_dir=tmp_path / "cache")


@pytest.fixture
def bundle_factory():
    return make_bundle
