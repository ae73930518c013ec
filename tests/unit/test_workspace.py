from captionsmith.domain.workspace import Workspace


def test_workspace_paths(tmp_path):
    ws = Workspace.create("abc123def456789", temp_root=tmp_path)
    assert ws.root.parent == tmp_path
    assert ws.root.name.startswith("captionsmith-abc123def456-")
    assert ws.output_base.name == "transcript"
    assert ws.transcript_srt.name == "transcript.srt"
    assert ws.transcript_ass.name == "transcript.ass"


def test_workspaces_are_private(tmp_path):
    a = Workspace.create("same", temp_root=tmp_path)
    b = Workspace.create("same", temp_root=tmp_path)
    assert a.root != b.root


def test_cleanup_removes_root(tmp_path):
    ws = Workspace.create("job", temp_root=tmp_path)
    ws.transcript_srt.write_text("x", encoding="utf-8")
    ws.cleanup()
    assert not ws.root.exists()
