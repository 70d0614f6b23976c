"""
Transform Attempt Cycle.

Drives one file through transform -> sanitize -> validate -> repair until it
verifies, the attempt bound is reached, or the oracle is unreachable.
"""

import logging
from collections.abc import Callable
from pathlib import PurePosixPath

from codeport.config.models import (
    AttemptFailure,
    AttemptState,
    ProjectContext,
    SourceFile,
    TransformAttempt,
    TransformOptions,
    TransformResult,
)
from codeport.state.manifest import Manifest, ManifestSnapshot
from codeport.translator.llm_client import (
    OracleRequest,
    OracleResponse,
    TransformationOracle,
    TransformConversation,
)
from codeport.translator.prompts import build_repair_message, build_system_prompt, build_user_prompt
from codeport.translator.sanitizer import sanitize
from codeport.verifier.compiler import CompilerOracle
from codeport.verifier.shadow import SHADOW_DEFINITIONS

logger = logging.getLogger(__name__)

EMPTY_OUTPUT_DIAGNOSTIC = "Your previous response was empty."
NO_CODE_DIAGNOSTIC = (
    "Your previous response contained no code. Start immediately with an import, "
    "an attribute or a type declaration."
)


def infer_output_path(source_path: str, target_extension: str) -> str:
    """Map a source path to its output path by swapping the extension."""
    return PurePosixPath(source_path.replace("\\", "/")).with_suffix(target_extension).as_posix()


class TransformAttemptCycle:
    """
    Per-file state machine.

    A cycle given a frozen ManifestSnapshot (parallel lane) builds its prompt
    from that snapshot; otherwise it reads the live Manifest when it starts
    (sequential lane). Either way it writes only through
    Manifest.record_verified.
    """

    def __init__(
        self,
        oracle: TransformationOracle,
        compiler: CompilerOracle,
        manifest: Manifest,
        options: TransformOptions,
        instructions: str,
        context: ProjectContext | None = None,
        manifest_view: ManifestSnapshot | None = None,
        shadow: str = SHADOW_DEFINITIONS,
        target_extension: str = ".swift",
        stream: bool = False,
        on_token: Callable[[str], None] | None = None,
    ):
        self.oracle = oracle
        self.compiler = compiler
        self.manifest = manifest
        self.options = options
        self.instructions = instructions
        self.context = context
        self.manifest_view = manifest_view
        self.shadow = shadow
        self.target_extension = target_extension
        self.stream = stream
        self.on_token = on_token
        self.state = AttemptState.PENDING

    def _transition(self, state: AttemptState, path: str):
        logger.debug(f"{path}: {self.state.value} -> {state.value}")
        self.state = state

    def _call_oracle(self, request: OracleRequest) -> OracleResponse:
        if self.stream:
            return self.oracle.stream(request, on_token=self.on_token)
        return self.oracle.transform(request)

    def _start_conversation(self, source_file: SourceFile) -> TransformConversation:
        view = self.manifest_view if self.manifest_view is not None else self.manifest.snapshot()

        conversation = TransformConversation()
        conversation.add_message("system", build_system_prompt(self.options, self.context))
        conversation.add_message(
            "user",
            build_user_prompt(source_file, self.instructions, self.options, self.context, view),
        )
        return conversation

    def run(self, source_file: SourceFile) -> TransformResult:
        """
        Run the cycle to a terminal state.

        Args:
            source_file: File to convert

        Returns:
            TransformResult; verified=False when attempts were exhausted or the
            oracle was unreachable
        """
        self.state = AttemptState.PENDING
        path = source_file.path
        output_path = infer_output_path(path, self.target_extension)
        conversation = self._start_conversation(source_file)
        history: list[TransformAttempt] = []
        last_sanitized = ""

        for attempt_number in range(1, self.options.max_attempts + 1):
            self._transition(AttemptState.ATTEMPTING, path)
            request = OracleRequest(
                messages=list(conversation.messages),
                options=self.options,
                subject=source_file,
            )
            response = self._call_oracle(request)
            attempt = TransformAttempt(attempt_number=attempt_number, raw_output=response.text)
            history.append(attempt)

            if response.fallback:
                attempt.failure = AttemptFailure.ORACLE_UNREACHABLE
                self._transition(AttemptState.FALLBACK, path)
                logger.warning(f"{path}: oracle unavailable, emitted placeholder")
                return TransformResult(
                    path=path,
                    output_path=output_path,
                    content=response.text,
                    verified=False,
                    attempts=attempt_number,
                    fallback=True,
                    history=history,
                )

            if not response.text.strip():
                attempt.failure = AttemptFailure.EMPTY_OUTPUT
                diagnostic, suggestion = EMPTY_OUTPUT_DIAGNOSTIC, None
            else:
                self._transition(AttemptState.SANITIZING, path)
                sanitized = sanitize(response.text)
                attempt.sanitized_output = sanitized

                if not sanitized:
                    attempt.failure = AttemptFailure.SANITIZATION_EMPTIED
                    diagnostic, suggestion = NO_CODE_DIAGNOSTIC, None
                else:
                    last_sanitized = sanitized
                    self._transition(AttemptState.VALIDATING, path)
                    validation = self.compiler.validate(sanitized, self.shadow)
                    attempt.validation = validation

                    if validation.ok:
                        self._transition(AttemptState.VERIFIED, path)
                        self.manifest.record_verified(source_file.content, sanitized, output_path)
                        logger.info(f"{path}: verified on attempt {attempt_number}")
                        return TransformResult(
                            path=path,
                            output_path=output_path,
                            content=sanitized,
                            verified=True,
                            attempts=attempt_number,
                            history=history,
                        )

                    attempt.failure = AttemptFailure.VALIDATION_FAILED
                    diagnostic = validation.diagnostic or "Unknown compiler error"
                    suggestion = validation.suggestion

            logger.info(f"{path}: attempt {attempt_number} failed ({attempt.failure.value})")
            if attempt_number < self.options.max_attempts:
                self._transition(AttemptState.RETRYING, path)
                conversation.add_message("assistant", response.text)
                conversation.add_message("user", build_repair_message(diagnostic, suggestion))

        self._transition(AttemptState.EXHAUSTED, path)
        logger.warning(f"{path}: not verified after {self.options.max_attempts} attempts")
        return TransformResult(
            path=path,
            output_path=output_path,
            content=last_sanitized,
            verified=False,
            attempts=self.options.max_attempts,
            history=history,
        )
