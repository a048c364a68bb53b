import random

import pytest

from stackjit import bench
from stackjit.opcodes import Opcode, _decode


def _report(code=b"\x03\x02\xff", interp=200, compile_ns=50, jit=100):
    return bench.CaseReport(
        code=code,
        interp_stack=[2],
        interp_memory={},
        interp_time_ns=interp,
        jit_compile_time_ns=compile_ns,
        jit_memory=[],
        jit_exec_time_ns=jit,
    )


def _result(name, speedup, length=20):
    return bench.BenchmarkResults(
        config_name=name,
        total_cases=1,
        total_interp_time_ns=100,
        total_jit_time_ns=100,
        total_jit_compile_time_ns=100,
        avg_interp_time_ns=100.0,
        avg_jit_time_ns=100.0,
        avg_jit_compile_time_ns=100.0,
        speedup=speedup,
        bytecode_length=length,
    )


@pytest.mark.parametrize("length", [0, 1, 20, 500])
def test_random_program_has_length_instructions_and_stop(length):
    code = bench.random_program(random.Random(7), length)
    instructions = list(_decode(code))
    assert len(instructions) == length + 1
    assert instructions[-1].opcode is Opcode.STOP
    assert all(i.opcode is not Opcode.STOP for i in instructions[:-1])


def test_random_program_operand_ranges():
    code = bench.random_program(random.Random(3), 1000)
    for instruction in _decode(code):
        if instruction.opcode is Opcode.PUSH:
            assert 1 <= instruction.operand <= 255
        elif instruction.opcode in (Opcode.SLOAD, Opcode.SSTORE):
            assert 0 <= instruction.operand < 32


def test_random_program_starts_shallow():
    for seed in range(20):
        first = next(_decode(bench.random_program(random.Random(seed), 5)))
        assert first.opcode in (Opcode.PUSH, Opcode.SLOAD, Opcode.DUP)


def test_random_program_is_deterministic_per_seed():
    a = bench.random_program(random.Random(42), 200)
    b = bench.random_program(random.Random(42), 200)
    assert a == b


def test_hex_code():
    assert bench.hex_code(bytes([0x03, 0x0A, 0xFF])) == "030aff"
    assert bench.hex_code(b"") == ""


def test_mem_snapshot_keeps_nonzero_slots_in_order():
    assert bench.mem_snapshot([0, 5, 0, 7]) == [(1, 5), (3, 7)]
    assert bench.mem_snapshot([0] * 8) == []


def test_run_case_simple_program():
    code = bytes([Opcode.PUSH, 2, Opcode.PUSH, 3, Opcode.ADD, Opcode.SSTORE, 0, Opcode.STOP])
    report = bench.run_case(code)
    assert report.code == code
    assert report.interp_stack == []
    assert report.interp_memory == {0: 5}
    assert report.jit_memory == [(0, 5)]
    assert report.interp_time_ns >= 0
    assert report.jit_exec_time_ns >= 0


@pytest.mark.parametrize("seed", range(10))
def test_run_case_interpreter_and_jit_agree(seed):
    code = bench.random_program(random.Random(seed), 300)
    report = bench.run_case(code)
    nonzero = {k: v for k, v in report.interp_memory.items() if v}
    assert nonzero == dict(report.jit_memory)


def test_case_report_speedup():
    assert _report(interp=300, jit=100).speedup == pytest.approx(3.0)


def test_summarize_aggregates_reports():
    config = bench.TestConfig("tiny", 2, 1)
    reports = [_report(interp=200, compile_ns=40, jit=100), _report(interp=400, compile_ns=60, jit=300)]
    result = bench.summarize(config, reports)
    assert result.config_name == "tiny"
    assert result.total_cases == 2
    assert result.bytecode_length == 1
    assert result.total_interp_time_ns == sum(r.interp_time_ns for r in reports)
    assert result.total_jit_time_ns == sum(r.jit_exec_time_ns for r in reports)
    assert result.avg_interp_time_ns == pytest.approx(result.total_interp_time_ns / 2)
    assert result.avg_jit_compile_time_ns == pytest.approx(result.total_jit_compile_time_ns / 2)
    assert result.speedup == pytest.approx(result.avg_interp_time_ns / result.avg_jit_time_ns)


def test_format_case_lines():
    text = bench.format_case(3, _report(interp=200, jit=100))
    lines = text.split("\n")
    assert lines[0] == "case 3 (length: 3)"
    assert "  bytecode: 0302ff" in lines
    assert "  interp_stack: [2]" in lines
    assert "  jit_exec_time_ns: 100" in lines
    assert "  speedup: 2.00x" in lines
    assert text.endswith("\n\n")


def test_format_summary_lists_configs_and_header():
    text = bench.format_summary([_result("small", 1.5)], bench.TEST_CONFIGS)
    assert text.startswith("BYTECODE JIT vs INTERPRETER BENCHMARK SUMMARY\n")
    assert "  small: 10 cases, 20 opcodes" in text
    assert "  xxlarge: 3 cases, 2000 opcodes" in text
    assert "✓ JIT shows consistent performance benefits across all test sizes" in text
    assert "significant speedups" not in text


def test_format_summary_best_and_worst():
    results = [_result("small", 0.5), _result("large", 3.0), _result("medium", 1.0)]
    text = bench.format_summary(results, bench.TEST_CONFIGS)
    assert "(large)" in text.split("Best speedup:")[1].split("\n")[0]
    assert "(small)" in text.split("Worst speedup:")[1].split("\n")[0]
    assert "✓ JIT achieves significant speedups (>2x) on some workloads" in text


def test_format_summary_warns_when_slower():
    text = bench.format_summary([_result("small", 0.5)], bench.TEST_CONFIGS)
    assert "⚠ JIT performance needs optimization" in text


def test_format_summary_rejects_empty_results():
    with pytest.raises(ValueError):
        bench.format_summary([], bench.TEST_CONFIGS)


def test_main_writes_reports(tmp_path, capsys):
    assert bench.main(["--reports-dir", str(tmp_path), "--seed", "1"]) == 0
    detailed = list(tmp_path.glob("detailed-*.log"))
    summary = list(tmp_path.glob("summary-*.log"))
    assert len(detailed) == 1 and len(summary) == 1
    detailed_text = detailed[0].read_text(encoding="utf-8")
    assert "=== SMALL TESTS (length: 20, cases: 10) ===" in detailed_text
    assert detailed_text.count("case 0 (length:") == len(bench.TEST_CONFIGS)
    summary_text = summary[0].read_text(encoding="utf-8")
    for config in bench.TEST_CONFIGS:
        assert f"  {config.name}: {config.num_cases} cases, {config.prog_len} opcodes" in summary_text
    out = capsys.readouterr().out
    assert "📊 Benchmark completed!" in out
    assert "Quick Summary:" in out