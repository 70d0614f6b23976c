"""
Unit tests for the project context summarizer.
"""

import pytest

from codeport.analyzer.context import (
    build_project_context,
    classify_file_role,
    detect_libraries,
    summarize_file,
)
from codeport.config.models import SourceFile

MAIN_ACTIVITY = """\
package com.example.app

class MainActivity : AppCompatActivity() {
    private val viewModel: MainViewModel by viewModels()
    var counter = 0

    override fun onCreate(savedInstanceState: Bundle?) {
        val prefs = getSharedPreferences("user_prefs", MODE_PRIVATE)
        val link = intent?.data
        val intent = Intent(this, DetailActivity::class.java)
        intent.putExtra("item_id", 42)
        startActivity(intent)
    }

    fun refresh() {}
}
"""

API_SERVICE = """\
import retrofit2.Retrofit

class ApiService {
    fun fetch() {}
}
"""


@pytest.fixture
def files():
    return [
        SourceFile(path="MainActivity.kt", content=MAIN_ACTIVITY),
        SourceFile(path="ApiService.kt", content=API_SERVICE),
    ]


def test_summarize_file_extracts_declarations():
    summary = summarize_file(SourceFile(path="MainActivity.kt", content=MAIN_ACTIVITY))

    assert summary.classes == ["MainActivity"]
    assert summary.functions == ["onCreate", "refresh"]
    assert "viewModel" in summary.state_variables
    assert "counter" in summary.state_variables


def test_summarize_file_extracts_signals():
    summary = summarize_file(SourceFile(path="MainActivity.kt", content=MAIN_ACTIVITY))

    assert "startactivity" in summary.navigation_calls
    assert "intent(" in summary.navigation_calls
    assert "viewmodel" in summary.state_usage
    assert "intent?.data" in summary.deep_link_handlers
    assert summary.persisted_keys == ["user_prefs"]
    assert summary.payload_keys == ["item_id"]


def test_file_role():
    assert classify_file_role("class MainViewModel : ViewModel()") == "viewmodel"
    assert classify_file_role("@Composable fun Screen() {}") == "ui"
    assert classify_file_role("val x = 1") == "unknown"


def test_detect_libraries():
    libraries = detect_libraries(API_SERVICE)
    assert libraries == {"Retrofit": "URLSession + Swift Concurrency (async/await)"}
    assert detect_libraries("fun main() {}") == {}


def test_project_context_aggregates_in_input_order(files):
    context = build_project_context(files)

    assert context.file_count == 2
    assert [s.path for s in context.files] == ["MainActivity.kt", "ApiService.kt"]
    assert context.class_index == ["MainActivity", "ApiService"]
    assert context.persisted_key_signals == ["user_prefs"]
    assert context.external_payload_keys == ["item_id"]
    assert context.summary_for("ApiService.kt").libraries


def test_summaries_are_independent(files):
    alone = summarize_file(files[1])
    together = build_project_context(files).summary_for("ApiService.kt")
    assert alone == together


def test_empty_project():
    context = build_project_context([])
    assert context.file_count == 0
    assert context.class_index == []
