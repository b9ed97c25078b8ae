#!/usr/bin/env python3

import unittest
from unittest.mock import AsyncMock, patch

from expecttest import TestCase

from gitalias import __version__, operations
from gitalias.errors import (
    CommandError,
    CommitMessageError,
    MissingArgumentError,
    OperationError,
    RemoteDetectionError,
    SameBranchError,
)
from gitalias.testing import FakeGit, capture_echo

STASH_REF = ("rev-parse", "-q", "--verify", "refs/stash")


class OperationTestCase(TestCase, unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        # Keep alias output out of the test log
        self.echo = capture_echo()
        self.output = self.echo.__enter__()
        self.addCleanup(self.echo.__exit__, None, None, None)


class TestCommit(OperationTestCase):
    async def test_it_stages_lints_and_commits(self):
        git = FakeGit()
        await operations.it(git, "feat: add thing")
        self.assertEqual(
            git.calls, [("add", "--all"), ("commit", "-m", "feat: add thing")]
        )
        self.assertIn(">> Your commit message adheres to the commit rules", self.output)

    async def test_it_rejects_bad_message_before_committing(self):
        git = FakeGit()
        with self.assertRaises(OperationError) as cm:
            await operations.it(git, "added stuff")

        self.assertEqual(str(cm.exception), "Failed to stage and commit changes")
        self.assertIsInstance(cm.exception.__cause__, CommitMessageError)
        self.assertEqual(git.calls, [("add", "--all")])

    async def test_it_without_message(self):
        git = FakeGit()
        with self.assertRaises(OperationError):
            await operations.it(git, None)
        self.assertNotIn("commit", git.commands())

    async def test_up_commits_then_pushes(self):
        git = FakeGit(remotes=["origin"], branch="main")
        await operations.up(git, "fix(api): handle 404", extra=("--no-verify",))
        self.assertExpectedInline(
            "\n".join(git.commands()),
            """\
add --all
commit -m fix(api): handle 404
remote
rev-parse --abbrev-ref HEAD
push origin main --no-verify""",
        )

    async def test_up_never_pushes_after_failed_lint(self):
        git = FakeGit()
        with self.assertRaises(OperationError) as cm:
            await operations.up(git, "added stuff")

        self.assertFalse(any(call[0] == "push" for call in git.calls))
        outer = cm.exception
        inner = outer.__cause__
        self.assertEqual(str(outer), "Failed to commit and push changes")
        self.assertIsInstance(inner, OperationError)
        self.assertEqual(str(inner), "Failed to stage and commit changes")
        self.assertIsInstance(inner.__cause__, CommitMessageError)

    async def test_up_never_pushes_after_failed_commit(self):
        git = FakeGit(failures=[("commit", "-m", "feat: x")])
        with self.assertRaises(OperationError) as cm:
            await operations.up(git, "feat: x", "origin", "main")

        self.assertNotIn("push origin main", git.commands())
        self.assertIsInstance(cm.exception.__cause__.__cause__, CommandError)


class TestAmend(OperationTestCase):
    async def test_amend_without_message_keeps_it(self):
        git = FakeGit()
        await operations.amend(git)
        self.assertEqual(
            git.commands(), ["add --all", "commit --amend --no-edit"]
        )

    async def test_amend_with_message(self):
        git = FakeGit()
        await operations.amend(git, "docs: reword")
        self.assertEqual(
            git.calls,
            [("add", "--all"), ("commit", "--amend", "--message=docs: reword")],
        )

    async def test_amend_rejects_bad_message(self):
        git = FakeGit()
        with self.assertRaises(OperationError) as cm:
            await operations.amend(git, "reworded")
        self.assertEqual(str(cm.exception), "Failed to amend the last commit")
        self.assertEqual(git.calls, [("add", "--all")])

    async def test_amend_now_resets_author(self):
        git = FakeGit()
        await operations.amend_now(git)
        await operations.amend_now(git, "chore: bump")
        self.assertExpectedInline(
            "\n".join(git.commands()),
            """\
add --all
commit --amend --reset-author --no-edit
add --all
commit --amend --reset-author --message=chore: bump""",
        )

    async def test_amend_now_failure_message(self):
        git = FakeGit(failures=[("add", "--all")])
        with self.assertRaises(OperationError) as cm:
            await operations.amend_now(git)
        self.assertEqual(
            str(cm.exception), "Failed to amend the last commit with the current time"
        )
        self.assertEqual(git.calls, [("add", "--all")])


class TestRemoteOperations(OperationTestCase):
    async def test_push_detects_remote_and_branch(self):
        git = FakeGit(remotes=["origin"], branch="topic")
        await operations.push(git)
        self.assertEqual(git.calls[-1], ("push", "origin", "topic"))

    async def test_push_passes_extra_arguments(self):
        git = FakeGit()
        await operations.push(git, "upstream", "main", ("--tags", "--dry-run"))
        self.assertEqual(
            git.calls, [("push", "upstream", "main", "--tags", "--dry-run")]
        )

    async def test_push_with_ambiguous_remote_does_not_push(self):
        git = FakeGit(remotes=["origin", "upstream"])
        with self.assertRaises(OperationError) as cm:
            await operations.push(git)

        self.assertEqual(str(cm.exception), "Failed to push changes")
        self.assertIsInstance(cm.exception.__cause__, RemoteDetectionError)
        self.assertEqual(git.calls, [("remote",)])

    async def test_push_force(self):
        git = FakeGit()
        await operations.push_force(git, None, "main")
        self.assertEqual(git.calls[-1], ("push", "--force", "origin", "main"))

    async def test_pull(self):
        git = FakeGit(branch="dev")
        await operations.pull(git, extra=("--rebase",))
        self.assertEqual(git.calls[-1], ("pull", "origin", "dev", "--rebase"))

    async def test_pull_failure_message(self):
        git = FakeGit(failures=[("pull", "origin", "main")])
        with self.assertRaises(OperationError) as cm:
            await operations.pull(git)
        self.assertEqual(str(cm.exception), "Failed to pull changes")

    async def test_pull_force_resets_to_remote(self):
        git = FakeGit(branch="main")
        await operations.pull_force(git, "upstream")
        self.assertEqual(
            git.commands(),
            ["rev-parse --abbrev-ref HEAD", "fetch --all", "reset --hard upstream/main"],
        )

    async def test_pull_force_stops_when_fetch_fails(self):
        git = FakeGit(failures=[("fetch", "--all")])
        with self.assertRaises(OperationError) as cm:
            await operations.pull_force(git, "origin", "main")
        self.assertEqual(str(cm.exception), "Failed to forcibly update local code")
        self.assertEqual(git.commands(), ["fetch --all"])


class TestSync(OperationTestCase):
    async def test_sync_with_local_changes(self):
        git = FakeGit(
            remotes=["origin"],
            branch="main",
            responses={STASH_REF: [("", 1), ("1a2b3c", 0)]},
        )
        await operations.sync(git)
        self.assertExpectedInline(
            "\n".join(git.commands()),
            """\
remote
rev-parse --abbrev-ref HEAD
add --all
rev-parse -q --verify refs/stash
stash
rev-parse -q --verify refs/stash
fetch --all
checkout main
reset --hard origin/main
remote prune origin
stash pop""",
        )
        self.assertIn("==> Synced with 'origin/main'", self.output)

    async def test_sync_clean_tree_skips_stash_pop(self):
        git = FakeGit(responses={STASH_REF: ("", 1)})
        await operations.sync(git, "origin", "main")
        self.assertNotIn("stash pop", git.commands())
        self.assertIn("remote prune origin", git.commands())

    async def test_sync_existing_stash_is_left_alone(self):
        git = FakeGit(responses={STASH_REF: ("9f9f9f", 0)})
        await operations.sync(git, "origin", "main")
        self.assertNotIn("stash pop", git.commands())

    async def test_sync_is_fail_fast(self):
        git = FakeGit(failures=[("fetch", "--all")])
        with self.assertRaises(OperationError) as cm:
            await operations.sync(git, "origin", "main")

        self.assertEqual(str(cm.exception), "Failed to sync with remote")
        self.assertEqual(git.commands()[-1], "fetch --all")
        self.assertNotIn("Synced", "\n".join(self.output))


class TestHousekeeping(OperationTestCase):
    async def test_clean(self):
        git = FakeGit()
        await operations.clean(git)
        self.assertEqual(git.calls, [("gc", "--prune=now", "--aggressive")])
        self.assertEqual(self.output, ["", "==> Git Repository Cleaned", ""])

    async def test_clear(self):
        git = FakeGit()
        await operations.clear(git)
        self.assertEqual(git.commands(), ["reset --hard", "clean -df"])
        self.assertEqual(self.output, ["", "==> Git Repository Cleared", ""])

    async def test_missing_git_binary_is_reported(self):
        git = FakeGit()
        git.run = AsyncMock(side_effect=FileNotFoundError("git"))
        with self.assertRaises(OperationError) as cm:
            await operations.clean(git)
        self.assertEqual(str(cm.exception), "Failed to clean the git repository")

    async def test_ll_uses_configured_format(self):
        git = FakeGit()
        with patch("gitalias.operations.get_log_format", return_value="%h %s"):
            await operations.ll(git, ("-n", "3"))
        self.assertEqual(
            git.calls,
            [("log", "--abbrev-commit", "--decorate", "--pretty=format:%h %s", "-n", "3")],
        )

    async def test_ll_explicit_format(self):
        git = FakeGit()
        await operations.ll(git, log_format="%H")
        self.assertEqual(
            git.calls, [("log", "--abbrev-commit", "--decorate", "--pretty=format:%H")]
        )

    async def test_version(self):
        git = FakeGit()
        await operations.ver(git)
        await operations.aliases(git)
        self.assertEqual(
            self.output,
            [f"v{__version__}", f"git-aliases is at v{__version__}"],
        )
        self.assertEqual(git.calls, [])


class TestFixup(OperationTestCase):
    async def test_fixit_defaults_to_head(self):
        git = FakeGit(responses={("rev-parse", "HEAD"): "0123abcd\n"})
        await operations.fixit(git)
        self.assertEqual(
            git.calls,
            [
                ("rev-parse", "HEAD"),
                ("add", "--all"),
                ("commit", "--no-verify", "--fixup", "0123abcd"),
            ],
        )

    async def test_fixit_resolves_given_commit(self):
        git = FakeGit(responses={("rev-parse", "HEAD~2"): "feedface"})
        await operations.fixit(git, "HEAD~2")
        self.assertEqual(git.calls[-1], ("commit", "--no-verify", "--fixup", "feedface"))

    async def test_fixit_unknown_commit(self):
        git = FakeGit(failures=[("rev-parse", "nope")])
        with self.assertRaises(OperationError) as cm:
            await operations.fixit(git, "nope")
        self.assertEqual(str(cm.exception), "Failed to create a fixup commit")
        self.assertEqual(git.calls, [("rev-parse", "nope")])

    async def test_fixup_pushes(self):
        git = FakeGit(responses={("rev-parse", "HEAD"): "0123abcd"})
        await operations.fixup(git, None, "origin", "main", ("--force-with-lease",))
        self.assertEqual(
            git.calls[-1], ("push", "origin", "main", "--force-with-lease")
        )

    async def test_rebase_runs_without_editor(self):
        git = FakeGit()
        await operations.rebase(git, ("origin/main",))
        self.assertEqual(
            git.calls,
            [
                (
                    "rebase",
                    "--interactive",
                    "--autosquash",
                    "--autostash",
                    "--rebase-merges",
                    "--no-fork-point",
                    "origin/main",
                )
            ],
        )
        self.assertEqual(git.envs[0]["EDITOR"], "true")
        self.assertEqual(git.envs[0]["GIT_EDITOR"], "true")


class TestMerge(OperationTestCase):
    async def test_merge_requires_branch(self):
        git = FakeGit()
        with self.assertRaises(OperationError) as cm:
            await operations.merge(git, None)

        self.assertEqual(str(cm.exception), "Failed to merge branch")
        self.assertIsInstance(cm.exception.__cause__, MissingArgumentError)
        self.assertEqual(str(cm.exception.__cause__), "Error: No branch specified.")
        self.assertEqual(git.calls, [])

    async def test_merge_into_same_branch_is_refused(self):
        git = FakeGit(branch="main")
        with self.assertRaises(OperationError) as cm:
            await operations.merge(git, "main")

        self.assertIsInstance(cm.exception.__cause__, SameBranchError)
        self.assertEqual(git.calls, [("rev-parse", "--abbrev-ref", "HEAD")])

    async def test_merge_with_log(self):
        git = FakeGit(branch="main")
        await operations.merge(git, "feature")
        self.assertEqual(git.calls[-1], ("merge", "feature", "--no-ff", "--log"))
        self.assertEqual(git.envs[-1]["EDITOR"], "true")

    async def test_merge_with_message(self):
        git = FakeGit(branch="main")
        await operations.merge(git, "feature", "Merge feature work")
        self.assertEqual(
            git.calls[-1],
            ("merge", "feature", "--no-ff", "-m", "Merge feature work"),
        )

    async def test_merge_to_returns_to_starting_branch(self):
        git = FakeGit(branch="feature")
        await operations.merge_to(git, "develop")
        self.assertExpectedInline(
            "\n".join(git.commands()),
            """\
rev-parse --abbrev-ref HEAD
checkout develop
merge feature --no-ff --log
checkout feature""",
        )

    async def test_merge_to_with_message(self):
        git = FakeGit(branch="feature")
        await operations.merge_to(git, "develop", "Ship it")
        self.assertIn(("merge", "feature", "--no-ff", "-m", "Ship it"), git.calls)

    async def test_merge_to_same_branch_is_refused(self):
        git = FakeGit(branch="develop")
        with self.assertRaises(OperationError) as cm:
            await operations.merge_to(git, "develop")

        self.assertEqual(str(cm.exception), "Failed to merge into target branch")
        self.assertIsInstance(cm.exception.__cause__, SameBranchError)
        self.assertNotIn("checkout develop", git.commands())

    async def test_merge_to_stops_on_conflict(self):
        git = FakeGit(
            branch="feature", failures=[("merge", "feature", "--no-ff", "--log")]
        )
        with self.assertRaises(OperationError):
            await operations.merge_to(git, "develop")
        self.assertEqual(git.commands()[-1], "merge feature --no-ff --log")


class TestReset(OperationTestCase):
    async def test_reset_defaults_to_parent(self):
        git = FakeGit()
        await operations.reset(git)
        await operations.reset(git, "v1.0")
        self.assertEqual(
            git.calls, [("reset", "--soft", "HEAD^"), ("reset", "--soft", "v1.0")]
        )

    async def test_reset_force(self):
        git = FakeGit()
        await operations.reset_force(git)
        await operations.reset_force(git, "origin/main")
        self.assertEqual(
            git.calls,
            [("reset", "--hard", "HEAD^"), ("reset", "--hard", "origin/main")],
        )

    async def test_reset_failure_message(self):
        git = FakeGit(failures=[("reset", "--hard", "HEAD^")])
        with self.assertRaises(OperationError) as cm:
            await operations.reset_force(git)
        self.assertEqual(str(cm.exception), "Failed to force reset commit")


class TestOperationDecorator(OperationTestCase):
    async def test_failure_message_is_exposed(self):
        self.assertEqual(operations.push.failure_message, "Failed to push changes")
        self.assertEqual(operations.push.__name__, "push")

    async def test_unexpected_errors_propagate(self):
        @operations.operation("Failed to do the thing")
        async def broken(git):
            raise KeyError("bug")

        with self.assertRaises(KeyError):
            await broken(FakeGit())


if __name__ == "__main__":
    unittest.main()
