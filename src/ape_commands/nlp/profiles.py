"""
Built-in language profiles for the bundled domains.

Plugins for these domains can pass the matching profile to the plugin
registry instead of writing their own trigger lists.
"""

from typing import Dict, Optional

from .extractors import (
    extract_commit_message, extract_file_paths, extract_issue_key,
    extract_number, extract_quoted,
)
from .patterns import DomainLanguageProfile, HeuristicMatch, build_profile


def version_control_profile() -> DomainLanguageProfile:
    return build_profile(
        domain="git",
        default_command="status",
        patterns={
            "status": ["상태", "상황", "뭐 바뀌었어", "변경사항", "변경 내역", "현재 상태",
                       "status", "what changed"],
            "diff": ["차이", "변경 내용", "뭐가 바뀌었어", "코드 변경", "변경점", "diff"],
            "changes": ["변경된 파일", "어떤 파일", "수정된 파일", "changed files"],
            "add": ["스테이징", "추가해", "스테이지", "stage"],
            "commit": ["커밋", "변경사항 저장", "변경 기록", "체크포인트", "commit"],
            "auto-commit": ["자동 커밋", "알아서 커밋", "커밋 메시지 생성", "커밋 메시지 만들어",
                            "auto commit"],
            "push": ["푸시", "서버에 올려", "원격 저장소에 올려", "깃허브에 올려", "push"],
            "branch": ["브랜치", "브랜치 목록", "브랜치 정보", "branch"],
            "checkout": ["체크아웃", "브랜치 변경", "브랜치 이동", "checkout", "switch to"],
            "pull": ["당겨", "가져와", "pull"],
            "log": ["로그", "히스토리", "커밋 내역", "이력", "history", "log"],
        },
        extractors={
            "commit": extract_commit_message,
            "auto-commit": extract_commit_message,
            "add": extract_file_paths,
            "diff": extract_file_paths,
            "log": extract_number,
            "checkout": extract_quoted,
        },
        guidance=(
            "- Questions about what changed without a file mean 'status'; with a file or "
            "'what exactly' they mean 'diff'.\n"
            "- 'commit' needs a message argument; without one prefer 'auto-commit'.\n"
            "- A number next to history/log words is the log count.\n"
            "- Never choose 'push' unless the user explicitly asks to upload or push."
        ),
    )


def _refine_issue_key(normalized: str, original: str, match: Optional[HeuristicMatch]) -> Optional[HeuristicMatch]:
    # A bare issue key means a lookup of that issue, scored like a phrase of the key's length
    keys = extract_issue_key(original)
    if not keys:
        return match

    if match is None or match.command == "issue":
        key_score = min(1.0, len(keys[0]) / len(normalized))
        if match is not None and match.score >= key_score:
            match.args = keys
            return match
        return HeuristicMatch(command="issue", phrase=keys[0].lower(), score=key_score, args=keys)

    if not match.args:
        match.args = keys
    return match


def issue_tracker_profile() -> DomainLanguageProfile:
    return build_profile(
        domain="jira",
        default_command="list",
        patterns={
            "list": ["이슈 목록", "목록", "내 이슈", "list issues", "my issues"],
            "issue": ["이슈", "티켓", "이슈 보여줘", "이슈 정보", "이슈 확인", "show issue"],
            "create": ["생성", "만들어", "새 이슈", "이슈 생성", "새로 만들어", "create issue"],
            "search": ["검색", "찾아", "이슈 검색", "이슈 찾아", "search"],
            "update": ["업데이트", "수정", "이슈 업데이트", "바꿔", "update"],
            "comment": ["코멘트", "댓글", "코멘트 달아", "댓글 달아", "comment"],
        },
        extractors={
            "create": extract_quoted,
            "search": extract_quoted,
            "update": extract_issue_key,
            "comment": extract_issue_key,
        },
        refine=_refine_issue_key,
        guidance=(
            "- A bare issue key such as PROJ-123 means 'issue' (a lookup), not 'create'.\n"
            "- 'create' takes the project key and a quoted summary.\n"
            "- Listing or browsing without a key means 'list'."
        ),
    )


def build_system_profile() -> DomainLanguageProfile:
    return build_profile(
        domain="swdp",
        default_command="status",
        patterns={
            "status": ["상태", "진행 상황", "빌드 상태", "status"],
            "build": ["빌드", "빌드해", "build"],
            "test": ["테스트", "테스트 실행", "test"],
            "deploy": ["배포", "배포해", "deploy"],
            "logs": ["로그", "빌드 로그", "logs"],
        },
        extractors={"logs": extract_number},
        guidance=(
            "- Asking how a build is going means 'status', not 'build'.\n"
            "- Only choose 'deploy' when deployment is requested explicitly."
        ),
    )


def file_store_profile() -> DomainLanguageProfile:
    return build_profile(
        domain="pocket",
        default_command="ls",
        patterns={
            "ls": ["목록", "파일", "리스트", "파일 목록", "list files"],
            "info": ["정보", "상세", "속성", "메타데이터", "파일 정보"],
            "load": ["로드", "읽기", "내용", "열기", "파일 내용", "가져오기", "open"],
            "summarize": ["요약", "정리", "핵심", "summarize"],
            "tree": ["트리", "구조", "디렉토리 구조", "폴더 구조", "tree"],
            "find": ["검색", "찾기", "파일 찾기", "파일명 검색", "find"],
            "grep": ["내용 검색", "텍스트 검색", "본문 검색", "코드 검색", "패턴 검색", "grep"],
            "bucket": ["버킷", "스토리지", "저장소", "버킷 정보"],
        },
        extractors={
            "ls": extract_quoted,
            "info": extract_file_paths,
            "load": extract_file_paths,
            "summarize": extract_file_paths,
            "tree": extract_quoted,
            "find": extract_quoted,
            "grep": extract_quoted,
        },
        guidance=(
            "- Searching inside file contents means 'grep'; searching by file name means 'find'.\n"
            "- A path with a file extension plus reading words means 'load'."
        ),
    )


BUILTIN_PROFILES = {
    "git": version_control_profile,
    "jira": issue_tracker_profile,
    "swdp": build_system_profile,
    "pocket": file_store_profile,
}


def get_builtin_profile(domain: str) -> Optional[DomainLanguageProfile]:
    """A fresh copy of the bundled profile for ``domain``, if there is one."""
    factory = BUILTIN_PROFILES.get((domain or "").lower())
    return factory() if factory else None


def builtin_profiles() -> Dict[str, DomainLanguageProfile]:
    return {domain: factory() for domain, factory in BUILTIN_PROFILES.items()}
