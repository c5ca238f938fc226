"""Run configuration and user-parameter placeholders."""

import json

from pydantic import Field, ValidationError

from gtest_runner.models.base import Model

EXECUTABLE_PLACEHOLDER = "$(Executable)"
EXECUTABLE_DIR_PLACEHOLDER = "$(ExecutableDir)"
SOLUTION_DIR_PLACEHOLDER = "$(SolutionDir)"
TEST_DIR_PLACEHOLDER = "$(TestDir)"
THREAD_ID_PLACEHOLDER = "$(ThreadId)"


class SettingsError(Exception):
    """Raised when run settings cannot be parsed or validated."""


class RunSettings(Model):
    """Options controlling how test executables are invoked."""

    additional_test_execution_params: str = Field(
        default="",
        description="Extra arguments, may contain placeholders like $(Executable)",
    )
    working_dir: str = Field(
        default=EXECUTABLE_DIR_PLACEHOLDER,
        description="Working directory of the test process (placeholders allowed)",
    )
    path_extension: str = Field(
        default="", description="Directories prepended to PATH of the test process"
    )
    parallel_test_execution: bool = False
    max_nr_of_threads: int = Field(
        default=0, ge=0, description="Parallel workers, 0 means one per CPU"
    )
    print_test_output: bool = False
    kill_processes_on_cancel: bool = False
    batch_for_test_setup: str = ""
    batch_for_test_teardown: str = ""
    catch_exceptions: bool = True
    break_on_failure: bool = False
    run_disabled_tests: bool = False
    shuffle_tests: bool = False
    shuffle_tests_seed: int = Field(default=0, ge=0)
    nr_of_test_repetitions: int = Field(default=1, ge=-1)
    debug_mode: bool = False


def load_settings(settings_json: str) -> RunSettings:
    """Parse run settings from a JSON document.

    Raises:
        SettingsError: If the document is not valid JSON or fails validation

    """
    try:
        return RunSettings.model_validate(json.loads(settings_json or "{}"))
    except (json.JSONDecodeError, ValidationError) as e:
        raise SettingsError(f"Invalid run settings: {e}") from e


def substitute_placeholder(template: str, placeholder: str, value: str) -> str:
    """Replace every occurrence of a placeholder token literally."""
    return template.replace(placeholder, value)
