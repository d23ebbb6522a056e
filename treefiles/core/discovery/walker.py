# treefiles/core/discovery/walker.py
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Iterator, List, Optional
import structlog

from treefiles.config.settings import WalkConfig
from treefiles.core.discovery.classifier import Entry, EntryClassifier, Verdict
from treefiles.core.discovery.git_utils import global_ignore_file
from treefiles.core.discovery.ignore_rules import EMPTY_RULE_SET, IgnoreRuleSet, load_rule_file
from treefiles.core.discovery.path_resolution import join_child, prepare_root, to_slash, validate_root
from treefiles.core.discovery.stream import EmissionCounter, ResultStream
from treefiles.exceptions import MaxResultsExceeded, WalkCancelled, WalkError

log = structlog.get_logger(__name__)


class ConcurrentWalker:
    """
    Recursive directory walker with a global cap on concurrent subtrees.

    Before walking a child the walker tries to take an admission token without
    blocking. With a token, the child runs on the executor and gives the token
    back when it finishes; without one, the child is walked inline on the
    current thread. The executor has as many workers as there are tokens, so a
    submitted subtree never waits for a worker held by a blocked parent.
    """

    def __init__(
        self,
        classifier: EntryClassifier,
        stream: ResultStream,
        counter: EmissionCounter,
        executor: ThreadPoolExecutor,
        tokens: threading.BoundedSemaphore,
    ):
        self.classifier = classifier
        self.stream = stream
        self.counter = counter
        self._executor = executor
        self._tokens = tokens

    def should_stop(self) -> bool:
        return self.counter.exhausted or self.stream.cancelled

    def walk(self, entry: Entry, context: IgnoreRuleSet) -> None:
        """
        Walks `entry` and, for a directory, its entire subtree.

        Returns once every file below `entry` has been emitted or skipped.
        Raises the first error met anywhere in the subtree, after all sibling
        subtrees already started have finished.
        """
        if self.should_stop():
            return

        verdict, child_context = self.classifier.classify(entry, context)
        if verdict is Verdict.PRUNE or verdict is Verdict.SKIP:
            return
        if verdict is Verdict.EMIT:
            self._emit(entry.path)
            return

        children = self._list_directory(entry)
        self._walk_children(children, child_context)

    def _emit(self, path: str) -> None:
        count = self.counter.increment()
        self.stream.put(to_slash(path))
        if count % 1000 == 0:
            log.debug("walk_progress", emitted=count)

    def _list_directory(self, entry: Entry) -> List[Entry]:
        try:
            with os.scandir(entry.path) as it:
                return [Entry.from_dir_entry(d, join_child(entry.path, d.name)) for d in it]
        except OSError as e:
            log.warning("directory_list_failed", path=entry.path, error=str(e))
            raise WalkError(entry.path, e.strerror or str(e)) from e

    def _walk_children(self, children: List[Entry], context: IgnoreRuleSet) -> None:
        futures: List[Future] = []
        first_error: Optional[Exception] = None

        for child in children:
            if self.should_stop():
                break
            if self._tokens.acquire(blocking=False):
                try:
                    futures.append(self._executor.submit(self._walk_with_token, child, context))
                except RuntimeError:
                    self._tokens.release()
                    raise
                continue
            try:
                self.walk(child, context)
            except Exception as e:
                if first_error is None:
                    first_error = e

        # every started sibling settles before this directory reports back.
        for future in as_completed(futures):
            error = future.exception()
            if error is not None and first_error is None:
                first_error = error

        if first_error is not None:
            raise first_error

    def _walk_with_token(self, entry: Entry, context: IgnoreRuleSet) -> None:
        try:
            self.walk(entry, context)
        finally:
            self._tokens.release()


def initial_context(config: WalkConfig, root: str) -> IgnoreRuleSet:
    # global rules are resolved once and apply to the whole tree.
    context = EMPTY_RULE_SET
    if not config.use_global_ignore_file:
        return context

    global_file = global_ignore_file()
    if global_file is None:
        return context
    matcher = load_rule_file(global_file, root)
    if matcher is None:
        log.debug("global_ignore_file_unusable", path=str(global_file))
        return context
    log.info("global_ignore_file_loaded", path=str(global_file))
    return context.extended(matcher)


class FileWalk:
    """
    Handle for one running walk.

    Iterate it to receive paths as they are found; iteration ends when the
    whole tree has settled. `error` then holds the walk's terminal error, or
    None. A consumer that stops early must call `cancel()`.
    """

    def __init__(self, config: WalkConfig, root: Entry, context: IgnoreRuleSet):
        self.config = config
        self.root = root
        self.stream = ResultStream(config.stream_capacity)
        self.counter = EmissionCounter(config.max_results)
        self._context = context
        self._executor = ThreadPoolExecutor(
            max_workers=config.concurrency, thread_name_prefix="treefiles-walk"
        )
        self._walker = ConcurrentWalker(
            EntryClassifier(config),
            self.stream,
            self.counter,
            self._executor,
            threading.BoundedSemaphore(config.concurrency),
        )
        self._coordinator = threading.Thread(
            target=self._run, name="treefiles-coordinator", daemon=True
        )

    def start(self) -> "FileWalk":
        log.info(
            "walk_started",
            root=self.root.path,
            concurrency=self.config.concurrency,
            max_results=self.config.max_results,
            ignore_files=self.config.ignore_files_enabled,
        )
        self._coordinator.start()
        return self

    def _run(self) -> None:
        error: Optional[Exception] = None
        try:
            self._walker.walk(self.root, self._context)
        except (MaxResultsExceeded, WalkCancelled) as e:
            error = e
        except WalkError as e:
            log.error("walk_failed", root=self.root.path, error=str(e))
            error = e
        except Exception as e:
            log.error("walk_failed_unexpectedly", root=self.root.path, error=str(e), exc_info=True)
            error = e
        finally:
            self._executor.shutdown(wait=True)
            log.info("walk_finished", root=self.root.path, emitted=self.counter.value, error=type(error).__name__ if error else None)
            self.stream.close(error)

    def __iter__(self) -> Iterator[str]:
        return iter(self.stream)

    @property
    def error(self) -> Optional[BaseException]:
        return self.stream.error

    @property
    def emitted(self) -> int:
        return self.counter.value

    def cancel(self) -> None:
        self.stream.cancel()

    def wait(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        # only returns early if the stream is drained or cancelled; a full stream blocks the walk.
        self._coordinator.join(timeout)
        return self.error


def walk_files(config: WalkConfig) -> FileWalk:
    """
    Starts walking `config.root` in the background and returns the walk handle.

    Raises RootError before any traversal if the root is missing, unreadable
    or not a directory.

    Progress is logged through structlog on the "treefiles" stdlib logger,
    which is silent until the application configures logging (for example
    with `treefiles.logging_setup.configure_logging`).
    """
    root = prepare_root(config.root, absolute=config.absolute)
    st = validate_root(root)
    context = initial_context(config, root)
    return FileWalk(config, Entry.from_stat(root, st), context).start()


def iter_files(config: WalkConfig) -> Iterator[str]:
    """
    Yields every matching file under `config.root`, then raises the walk's
    terminal error, if any. Closing the generator early cancels the walk.
    """
    walk = walk_files(config)
    completed = False
    try:
        yield from walk
        completed = True
    finally:
        if not completed:
            walk.cancel()
        walk.wait()
    if walk.error is not None:
        raise walk.error
